"""Cancellation endpoint - quarantine a cancelled tenant's phone number."""

import asyncio
import json

from src.services.bootstrap import create_tenant_lifecycle
from src.utils.http import JsonRequestHandler
from src.utils.logging import correlation_context, get_structured_logger, mask_phone_number

logger = get_structured_logger(__name__)


class handler(JsonRequestHandler):
    """Called by the billing cancellation flow with the number it has on file."""

    def do_POST(self):
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            try:
                body = self.read_json()
            except (json.JSONDecodeError, ValueError):
                self.send_json(400, {"success": False, "error": "invalid JSON body"})
                return

            phone_number = body.get("phoneNumber")
            if not phone_number:
                self.send_json(400, {"success": False, "error": "phoneNumber is required"})
                return

            try:
                lifecycle = create_tenant_lifecycle()
                asyncio.run(lifecycle.release_for_tenant(str(phone_number)))
            except Exception as e:
                # Store failures are loud; the caller decides whether to deactivate anyway
                logger.error(
                    "Failed to recycle phone number",
                    exc_info=True,
                    phone_number=mask_phone_number(str(phone_number)),
                    reconciliation_required=True,
                    error=str(e),
                )
                self.send_json(500, {"success": False, "error": "Failed to release phone number"})
                return

            self.send_json(200, {"success": True})

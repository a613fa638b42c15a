"""Admin endpoint: sync the vendor's number listing into inventory."""

import asyncio
import json

from pydantic import ValidationError

from src.models.lifecycle import VendorPhoneEntry
from src.services.bootstrap import create_allocator
from src.services.vendor_sync import sync_vendor_numbers
from src.utils.http import JsonRequestHandler
from src.utils.logging import correlation_context, get_structured_logger

logger = get_structured_logger(__name__)


class handler(JsonRequestHandler):
    """POST {"phones": [{"number", "phoneId", "type", "monthlyPrice"}]}."""

    def do_POST(self):
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            try:
                body = self.read_json()
                entries = [
                    VendorPhoneEntry(
                        number=phone.get("number"),
                        phone_id=phone.get("phoneId"),
                        type=phone.get("type"),
                        monthly_price=phone.get("monthlyPrice"),
                    )
                    for phone in body.get("phones", [])
                ]
            except (json.JSONDecodeError, ValueError, AttributeError, ValidationError):
                self.send_json(400, {"success": False, "error": "phones must be a list of {number, phoneId}"})
                return

            try:
                allocator = create_allocator()
                report = asyncio.run(sync_vendor_numbers(allocator, entries))
            except Exception as e:
                logger.error("Error syncing phone numbers", exc_info=True, error=str(e))
                self.send_json(500, {"success": False, "error": "Failed to sync phone numbers"})
                return

            self.send_json(200, {
                "success": True,
                "message": report.message,
                "phones": [entry.model_dump(mode="json") for entry in report.entries],
            })

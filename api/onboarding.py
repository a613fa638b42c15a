"""Onboarding endpoint - assign a local number to a tenant by ZIP code."""

import asyncio
import json

from src.services.bootstrap import create_tenant_lifecycle
from src.utils.http import JsonRequestHandler
from src.utils.logging import correlation_context, get_structured_logger, mask_tenant_id

logger = get_structured_logger(__name__)


class handler(JsonRequestHandler):
    """Vercel serverless function handler for tenant onboarding."""

    def do_POST(self):
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            try:
                body = self.read_json()
            except (json.JSONDecodeError, ValueError):
                self.send_json(400, {"success": False, "error": "invalid JSON body"})
                return

            zip_code = body.get("zipCode")
            tenant_id = body.get("tenantId")
            if not zip_code or not tenant_id:
                self.send_json(400, {"success": False, "error": "zipCode and tenantId are required"})
                return

            try:
                lifecycle = create_tenant_lifecycle()
                result = asyncio.run(lifecycle.acquire_and_assign(str(zip_code), str(tenant_id)))
            except Exception as e:
                logger.error("Onboarding error", exc_info=True, tenant_id=mask_tenant_id(str(tenant_id)), error=str(e))
                self.send_json(500, {"success": False, "error": "Failed to complete onboarding"})
                return

            if not result.success:
                self.send_json(400, {
                    "success": False,
                    "reason": result.rejection.value,
                    "error": result.message,
                })
                return

            self.send_json(200, {
                "success": True,
                "data": {
                    "tenantId": result.tenant_id,
                    "assignedPhoneNumber": result.phone_number,
                    "areaCode": result.area_code,
                    "location": result.location.model_dump() if result.location else None,
                    "existing": result.existing,
                    "message": result.message,
                },
            })

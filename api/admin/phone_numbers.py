"""Admin inventory endpoint: search, stats, manual ingest, carrier ID override."""

import asyncio
import json

from pydantic import ValidationError

from src.models.allocation import SearchCriteria
from src.services.bootstrap import create_allocator
from src.utils.errors import InvalidPhoneNumberError
from src.utils.http import JsonRequestHandler
from src.utils.logging import correlation_context, get_structured_logger

logger = get_structured_logger(__name__)


class handler(JsonRequestHandler):
    """Operations dashboard backend for the phone number inventory."""

    def do_GET(self):
        """GET ?stats=true for pool stats, otherwise search by areaCode/status/previousTenantId/search."""
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            params = self.query_params()
            try:
                allocator = create_allocator()
                if params.get("stats") == "true":
                    stats = asyncio.run(allocator.stats())
                    self.send_json(200, {"success": True, "stats": stats.model_dump(mode="json")})
                    return

                criteria = SearchCriteria(
                    area_code=params.get("areaCode") or None,
                    status=params.get("status") or None,
                    previous_tenant_id=params.get("previousTenantId") or None,
                    search=params.get("search") or None,
                )
                numbers = asyncio.run(allocator.search(criteria))
            except ValidationError as e:
                self.send_json(400, {"success": False, "error": f"invalid search criteria: {e.errors()[0]['msg']}"})
                return
            except Exception as e:
                logger.error("Error fetching phone inventory", exc_info=True, error=str(e))
                self.send_json(500, {"success": False, "error": "Failed to fetch phone inventory"})
                return

            self.send_json(200, {
                "success": True,
                "numbers": [n.model_dump(mode="json") for n in numbers],
                "count": len(numbers),
            })

    def do_POST(self):
        """Manual ingest of an out-of-band number."""
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            try:
                body = self.read_json()
            except (json.JSONDecodeError, ValueError):
                self.send_json(400, {"success": False, "error": "invalid JSON body"})
                return

            phone_number = body.get("phoneNumber")
            carrier_number_id = body.get("carrierNumberId")
            if not phone_number or not carrier_number_id:
                self.send_json(400, {"success": False, "error": "phoneNumber and carrierNumberId are required"})
                return

            try:
                allocator = create_allocator()
                result = asyncio.run(allocator.ingest(
                    str(phone_number),
                    str(carrier_number_id),
                    area_code=body.get("areaCode"),
                    monthly_price=body.get("monthlyPrice"),
                    notes=body.get("notes"),
                ))
            except (InvalidPhoneNumberError, ValidationError) as e:
                self.send_json(400, {"success": False, "error": str(e)})
                return
            except Exception as e:
                logger.error("Error adding to inventory", exc_info=True, error=str(e))
                self.send_json(500, {"success": False, "error": "Failed to add number to inventory"})
                return

            self.send_json(201 if result.created else 200, {
                "success": True,
                "outcome": result.outcome.value,
                "phone": result.record.model_dump(mode="json"),
            })

    def do_PATCH(self):
        """Set or clear carrierNumberId without touching status."""
        with correlation_context(self.correlation_id()):
            if not self.require_admin():
                return

            try:
                body = self.read_json()
            except (json.JSONDecodeError, ValueError):
                self.send_json(400, {"success": False, "error": "invalid JSON body"})
                return

            phone_number = body.get("phoneNumber")
            if not phone_number or "carrierNumberId" not in body:
                self.send_json(400, {"success": False, "error": "phoneNumber and carrierNumberId are required"})
                return

            carrier_number_id = body["carrierNumberId"]
            try:
                allocator = create_allocator()
                updated = asyncio.run(allocator.set_carrier_number_id(
                    str(phone_number),
                    str(carrier_number_id) if carrier_number_id is not None else None,
                ))
            except InvalidPhoneNumberError as e:
                self.send_json(400, {"success": False, "error": str(e)})
                return
            except Exception as e:
                logger.error("Error updating carrier number ID", exc_info=True, error=str(e))
                self.send_json(500, {"success": False, "error": "Failed to update carrier number ID"})
                return

            if updated is None:
                self.send_json(404, {"success": False, "error": "Phone number not found in inventory"})
                return

            self.send_json(200, {"success": True, "phone": updated.model_dump(mode="json")})

"""Health check endpoint."""

from src.services.area_resolver import supported_zip_prefixes
from src.utils.config import InventoryConfig
from src.utils.http import JsonRequestHandler
from src.utils.logging_config import SERVICE_NAME


class handler(JsonRequestHandler):
    """Health check for the allocator service. Does not touch the inventory store."""

    def do_GET(self):
        self.send_json(200, {
            "status": "ok",
            "service": SERVICE_NAME,
            "coverageZipPrefixes": len(supported_zip_prefixes()),
            "cooldownDays": InventoryConfig.COOLDOWN_DAYS,
        })

    def do_POST(self):
        """Same as GET for health check."""
        self.do_GET()

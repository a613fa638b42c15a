"""JSON request/response helpers shared by the serverless handlers in ``api/``."""

import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from src.services.admin_auth import verify_admin_request
from src.utils.logging import get_structured_logger
from src.utils.logging_config import LoggingConfig

# Handlers run as serverless entry points; configure logging once per cold start
LoggingConfig.setup_logging()

logger = get_structured_logger(__name__)


class JsonRequestHandler(BaseHTTPRequestHandler):
    """BaseHTTPRequestHandler with JSON body parsing and bearer-token checks."""

    def read_json(self) -> dict:
        """Parse the request body. Raises ValueError on anything but a JSON object."""
        content_length = int(self.headers.get('Content-Length', 0))
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
        if not raw_body:
            return {}

        body = json.loads(raw_body)
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        return body

    def query_params(self) -> dict[str, str]:
        query = urlsplit(self.path).query
        return {key: values[-1] for key, values in parse_qs(query).items() if values}

    def send_json(self, status: int, payload: Any) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def correlation_id(self) -> Optional[str]:
        return self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)

    def require_admin(self) -> bool:
        """Send 401 and return False unless the bearer token checks out."""
        if verify_admin_request(self.headers.get("Authorization")):
            return True
        self.send_json(401, {"success": False, "error": "unauthorized"})
        return False

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("HTTP request", request_line=format % args)

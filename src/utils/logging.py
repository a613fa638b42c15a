"""Structured logging utilities with correlation IDs, performance timing, and PII masking."""

import logging
import time
import uuid
import hashlib
from typing import Any, Awaitable, Callable, Dict, Optional
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from datetime import datetime, timezone

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the correlation ID in context."""
    _correlation_id_var.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Context manager for correlation ID propagation."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    old_id = get_correlation_id()
    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(old_id)


def mask_phone_number(phone_number: Optional[str]) -> Optional[str]:
    """
    Mask a phone number for logging, keeping the area code and last 2 digits.

    +14045550123 -> +1404*****23
    """
    if not phone_number or not LoggingConfig.LOG_MASK_SENSITIVE:
        return phone_number

    digits = phone_number.lstrip("+")
    if len(digits) < 7:
        return "*" * len(phone_number)

    # Country code (1) + area code (3) stay visible for NANP numbers
    visible_prefix = digits[:4]
    masked = visible_prefix + "*" * (len(digits) - 6) + digits[-2:]
    return f"+{masked}" if phone_number.startswith("+") else masked


def mask_tenant_id(tenant_id: Optional[str]) -> Optional[str]:
    """Mask or hash a tenant ID for privacy."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not tenant_id:
        return tenant_id

    if len(tenant_id) > 12:
        hashed = hashlib.sha256(tenant_id.encode()).hexdigest()[:8]
        return f"{tenant_id[:4]}...{hashed}"
    return tenant_id


class StructuredLogger:
    """Logger wrapper that attaches structured fields to every record."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **kwargs: Any) -> Dict[str, Any]:
        extra = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id

        extra.update(kwargs)
        return extra

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**kwargs), exc_info=exc_info)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: StructuredLogger, **context: Any):
    """Log how long the enclosed block took; warn past the slow-operation threshold."""
    threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug(f"Completed {operation_name}", operation=operation_name, processing_time_ms=elapsed_ms, **context)
        if elapsed_ms > threshold_ms:
            logger.warning(
                f"Slow operation detected: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold_ms,
                **context
            )


def timed(operation_name: str):
    """Time an async service method under the logger of its module."""
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        log = get_structured_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            with log_timing(operation_name, logger=log):
                return await func(*args, **kwargs)

        return wrapper

    return decorator

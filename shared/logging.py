"""
Shared logging configuration for the enterprise auth service.

Events are rendered as JSON by structlog. Request correlation (request id,
caller user id and region uid) is carried in context variables and merged
into every event; credential and PII fields are masked before rendering.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
region_uid_var: ContextVar[Optional[str]] = ContextVar('region_uid', default=None)

MASK = "***"
# Compared with "_" and "-" removed, case-insensitive
MASKED_FIELDS = frozenset({
    "authorization",
    "token",
    "jwtsecret",
    "secsskeypassword",
    "sensdata",
    "accountno",
})


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            mask_sensitive_fields,
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict.setdefault("service", logger_name.split(".")[0])
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request and caller correlation to log events.

    Values passed explicitly to the log call win over the context.
    """
    for key, var in (("request_id", request_id_var), ("user_id", user_id_var), ("region_uid", region_uid_var)):
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    return event_dict


def mask_sensitive_fields(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential and PII values, including inside nested header/detail dicts."""
    return _mask(event_dict)


def _mask(values: Dict[str, Any]) -> Dict[str, Any]:
    masked = {}
    for key, value in values.items():
        if str(key).lower().replace("-", "").replace("_", "") in MASKED_FIELDS and value is not None:
            masked[key] = MASK
        elif isinstance(value, dict):
            masked[key] = _mask(value)
        else:
            masked[key] = value
    return masked


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None, region_uid: Optional[str] = None):
    """Set caller context in logging."""
    if user_id:
        user_id_var.set(user_id)
    if region_uid:
        region_uid_var.set(region_uid)


def get_user_context() -> Dict[str, str]:
    """Return the caller context, "unknown" where unset."""
    return {
        "user_id": user_id_var.get() or "unknown",
        "region_uid": region_uid_var.get() or "unknown",
    }


def clear_context():
    request_id_var.set(None)
    user_id_var.set(None)
    region_uid_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

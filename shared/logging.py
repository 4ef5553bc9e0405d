"""
Structured logging for the EliteScholar Access Layer.

Every log line is JSON and carries the service name, the active trace and
the caller context of the request being served: request id, user, tenant
and role. The caller context lives in context variables bound once per
request and cleared when the request is done.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

from opentelemetry import trace

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar('tenant_id', default=None)
role_var: ContextVar[Optional[str]] = ContextVar('role', default=None)

# Log field name -> variable, in the order fields are emitted
CONTEXT_VARS: Dict[str, ContextVar] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "tenant_id": tenant_id_var,
    "role": role_var,
}


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Route structlog through stdlib logging as one JSON object per line."""

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
            add_service_name,
            add_trace_context,
            add_caller_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict.setdefault("service", logger_name.split(".")[0])
    return event_dict


def add_trace_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the ids of the current OpenTelemetry span, when one is recording."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            event_dict["trace_id"] = f"{span_context.trace_id:032x}"
        if span_context.span_id != 0:
            event_dict["span_id"] = f"{span_context.span_id:016x}"

    return event_dict


def add_caller_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the bound caller context. Explicit event fields win."""
    for name, value in log_context().items():
        event_dict.setdefault(name, value)
    return event_dict


def log_context() -> Dict[str, str]:
    """Snapshot of the caller context currently bound, empty fields left out."""
    context = {}
    for name, var in CONTEXT_VARS.items():
        value = var.get()
        if value:
            context[name] = value
    return context


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the request id, generating one when the caller sent none."""
    request_id = request_id or str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None, tenant_id: Optional[str] = None,
                     role: Optional[str] = None) -> Dict[str, str]:
    """Bind who is calling and return what was bound.

    Empty values leave the current binding alone, so a session without a
    tenant does not erase a tenant bound earlier in the request.
    """
    bound = {}
    for name, value in (("user_id", user_id), ("tenant_id", tenant_id), ("role", role)):
        if value:
            CONTEXT_VARS[name].set(value)
            bound[name] = value
    return bound


def clear_context():
    for var in CONTEXT_VARS.values():
        var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)

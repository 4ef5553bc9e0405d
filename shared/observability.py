"""
Observability module for the EliteScholar Access Layer.
Integrates logging, metrics, and tracing behind one per-service manager.
"""

from typing import Optional

from .logging import configure_logging, get_logger, set_request_id, set_user_context, clear_context
from .metrics import MetricsCollector
from .tracing import configure_tracing, add_span_attributes, add_span_event


class ObservabilityManager:
    """Centralized observability manager for services."""

    def __init__(self, service_name: str, metrics: MetricsCollector, log_level: str = "info",
                 otel_exporter: Optional[str] = None, enable_tracing: bool = False,
                 enable_console: bool = False):
        self.service_name = service_name
        self.log_level = log_level
        self.metrics = metrics

        configure_logging(service_name, log_level)
        if enable_tracing:
            configure_tracing(service_name, otel_exporter, enable_console)

        self.logger = get_logger(f"{service_name}.observability")
        self.logger.info("Observability initialized",
                         log_level=log_level,
                         tracing_enabled=enable_tracing)

    def trace_request(self, request_id: Optional[str] = None,
                      user_id: Optional[str] = None,
                      tenant_id: Optional[str] = None,
                      role: Optional[str] = None) -> str:
        """Set up request context for logs and the current span."""
        request_id = set_request_id(request_id)
        set_user_context(user_id, tenant_id, role)

        add_span_attributes(
            request_id=request_id,
            user_id=user_id,
            tenant_id=tenant_id,
            role=role
        )
        return request_id

    def clear_request_context(self):
        """Clear request context."""
        clear_context()

    def log_error(self, error_type: str, error_message: str, **kwargs):
        """Log error with full context."""
        self.logger.error(
            "Error occurred",
            error_type=error_type,
            error_message=error_message,
            **kwargs
        )
        self.metrics.record_error(error_type)
        add_span_event("error", error_type=error_type, error_message=error_message)

    def log_business_event(self, event_type: str, **kwargs):
        """Log business event with full context."""
        self.logger.info(
            "Business event",
            event_type=event_type,
            **kwargs
        )
        self.metrics.record_business_event(event_type)
        add_span_event("business_event", event_type=event_type, **kwargs)

"""OpenTelemetry integration for observability"""

from .telemetry import (
    setup_telemetry,
    get_tracer,
    get_meter,
    get_logger,
    create_span,
    record_exception,
    create_overlay_metrics,
)

__all__ = [
    "setup_telemetry",
    "get_tracer",
    "get_meter",
    "get_logger",
    "create_span",
    "record_exception",
    "create_overlay_metrics",
]

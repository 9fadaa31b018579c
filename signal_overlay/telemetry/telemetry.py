"""OpenTelemetry instrumentation for the signal overlay."""

import logging
import os
from typing import Optional

from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION, DEPLOYMENT_ENVIRONMENT

from signal_overlay import __version__

SERVICE = "signal-overlay"


def get_resource(session_id: str) -> Resource:
    """Create resource with service and session information."""
    return Resource.create({
        SERVICE_NAME: SERVICE,
        SERVICE_VERSION: __version__,
        DEPLOYMENT_ENVIRONMENT: os.getenv("ENV", "production"),
        "overlay.session_id": session_id,
    })


def setup_tracing(session_id: str, endpoint: str = "http://localhost:4318") -> TracerProvider:
    """Setup OpenTelemetry tracing.

    Args:
        session_id: Overlay session ID
        endpoint: OTLP endpoint (collector)

    Returns:
        TracerProvider instance
    """
    provider = TracerProvider(resource=get_resource(session_id))

    otlp_exporter = OTLPSpanExporter(
        endpoint=f"{endpoint}/v1/traces",
        timeout=30,
    )
    provider.add_span_processor(BatchSpanProcessor(
        otlp_exporter,
        max_queue_size=1024,
        max_export_batch_size=256,
        schedule_delay_millis=10000,  # 10 seconds
    ))
    trace.set_tracer_provider(provider)

    return provider


def setup_metrics(session_id: str, endpoint: str = "http://localhost:4318") -> MeterProvider:
    """Setup OpenTelemetry metrics.

    Args:
        session_id: Overlay session ID
        endpoint: OTLP endpoint (collector)

    Returns:
        MeterProvider instance
    """
    otlp_exporter = OTLPMetricExporter(
        endpoint=f"{endpoint}/v1/metrics",
        timeout=30,
    )
    reader = PeriodicExportingMetricReader(
        otlp_exporter,
        export_interval_millis=60000,  # Export every 60 seconds
    )
    provider = MeterProvider(
        resource=get_resource(session_id),
        metric_readers=[reader],
    )
    metrics.set_meter_provider(provider)

    return provider


def setup_logging(session_id: str, endpoint: str = "http://localhost:4318") -> LoggerProvider:
    """Setup OpenTelemetry logging.

    Args:
        session_id: Overlay session ID
        endpoint: OTLP endpoint (collector)

    Returns:
        LoggerProvider instance
    """
    provider = LoggerProvider(resource=get_resource(session_id))

    otlp_exporter = OTLPLogExporter(
        endpoint=f"{endpoint}/v1/logs",
        timeout=30,
    )
    provider.add_log_record_processor(BatchLogRecordProcessor(
        otlp_exporter,
        max_queue_size=1024,
        max_export_batch_size=256,
        schedule_delay_millis=10000,  # 10 seconds
    ))

    # Add handler to root logger
    handler = LoggingHandler(level=logging.INFO, logger_provider=provider)
    logging.getLogger().addHandler(handler)

    return provider


def setup_telemetry(session_id: str, endpoint: str = "http://localhost:4318", enabled: bool = True):
    """Setup all OpenTelemetry components.

    Args:
        session_id: Overlay session ID
        endpoint: OTLP endpoint
        enabled: When False nothing is installed and the API stays no-op

    Returns:
        (tracer_provider, meter_provider, logger_provider), all None when disabled
    """
    if not enabled:
        logging.info("OpenTelemetry is disabled")
        return None, None, None

    logging.info(
        f"Initializing OpenTelemetry for {SERVICE}, "
        f"session_id: {session_id}, "
        f"endpoint: {endpoint}"
    )

    tracer_provider = setup_tracing(session_id, endpoint)
    meter_provider = setup_metrics(session_id, endpoint)
    logger_provider = setup_logging(session_id, endpoint)

    logging.info("OpenTelemetry initialized successfully")

    return tracer_provider, meter_provider, logger_provider


def get_tracer(name: str):
    """Get a tracer instance (typically for __name__)."""
    return trace.get_tracer(name)


def get_meter(name: str):
    """Get a meter instance (typically for __name__)."""
    return metrics.get_meter(name)


def get_logger(name: str, session_id: Optional[str] = None):
    """Get a logger instance with structured logging support.

    Args:
        name: Logger name (typically __name__)
        session_id: Session ID to include in all logs

    Returns:
        Logger, or a LoggerAdapter stamping the session attributes
    """
    logger = logging.getLogger(name)

    if session_id:
        class SessionAdapter(logging.LoggerAdapter):
            def process(self, msg, kwargs):
                extra = kwargs.get('extra', {})
                extra['session_id'] = session_id
                extra['service.name'] = SERVICE
                extra['telemetry.sdk.language'] = "python"
                kwargs['extra'] = extra
                return msg, kwargs

        return SessionAdapter(logger, {'session_id': session_id})

    return logger


def create_span(name: str, **attributes):
    """Create a new span for manual instrumentation.

    Args:
        name: Span name
        **attributes: Span attributes

    Returns:
        Span context manager

    Example:
        with create_span("discovery", source="overpass"):
            ...
    """
    tracer = get_tracer(__name__)
    span = tracer.start_span(name)

    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, str(value))

    return trace.use_span(span, end_on_exit=True)


def record_exception(exception: Exception):
    """Record an exception in the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.record_exception(exception)
        span.set_status(trace.Status(trace.StatusCode.ERROR, str(exception)))


def create_overlay_metrics():
    """Create metric instruments for the overlay.

    Returns:
        Dictionary of metric instruments
    """
    meter = get_meter(SERVICE)

    return {
        # Counter: ticks applied across all sessions
        "ticks": meter.create_counter(
            name="signal_ticks_total",
            description="Total number of registry ticks",
            unit="1",
        ),

        # Counter: phase changes, attributed by target phase
        "phase_transitions": meter.create_counter(
            name="phase_transitions_total",
            description="Total number of signal phase transitions",
            unit="1",
        ),

        # Counter: discovery attempts, attributed by source
        "discovery_attempts": meter.create_counter(
            name="discovery_attempts_total",
            description="Total number of signal discovery attempts",
            unit="1",
        ),

        # Histogram: time spent inside one tick
        "tick_duration": meter.create_histogram(
            name="tick_duration_ms",
            description="Duration of one registry tick in milliseconds",
            unit="ms",
        ),
    }

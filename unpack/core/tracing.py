"""
OpenTelemetry Distributed Tracing Configuration.

Sets up OpenTelemetry for the journal service:
- TracerProvider with the service name
- BatchSpanProcessor with a console exporter
- FastAPI and httpx instrumentation (the OpenAI SDK talks through httpx)
- Environment variable control (OTEL_ENABLED=true/false)

Usage:
    from unpack.core.tracing import setup_tracing, get_tracer, instrument_app

    setup_tracing()
    instrument_app(app)

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("capture.extract") as span:
        span.set_attribute("capture.page_count", 3)

Environment Variables:
    OTEL_ENABLED: Set to "true" to enable tracing (default: false)
    OTEL_SERVICE_NAME: Override service name (default: unpack-journal-service)
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.trace import Tracer
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

logger = logging.getLogger("Unpack.Tracing")

DEFAULT_SERVICE_NAME = "unpack-journal-service"

_tracer_provider: Optional[TracerProvider] = None
_is_initialized = False


def is_tracing_enabled() -> bool:
    """True if OTEL_ENABLED is set to "true" (case-insensitive)."""
    return os.getenv("OTEL_ENABLED", "false").lower() == "true"


def setup_tracing(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    Initialize OpenTelemetry tracing.

    If OTEL_ENABLED is not "true", this function returns None and does nothing.

    Args:
        service_name: Optional override for the service name.

    Returns:
        The configured TracerProvider, or None if tracing is disabled.
    """
    global _tracer_provider, _is_initialized

    if _is_initialized:
        logger.debug("Tracing already initialized, skipping")
        return _tracer_provider

    if not is_tracing_enabled():
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        _is_initialized = True
        return None

    effective_service_name = (
        service_name
        or os.getenv("OTEL_SERVICE_NAME")
        or DEFAULT_SERVICE_NAME
    )

    resource = Resource.create({SERVICE_NAME: effective_service_name})
    _tracer_provider = TracerProvider(resource=resource)
    _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(_tracer_provider)

    _is_initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {effective_service_name}")

    return _tracer_provider


def get_tracer(name: str) -> Tracer:
    """
    Get a tracer instance for creating custom spans.

    Returns a no-op tracer when tracing is disabled.
    """
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    """Instrument a FastAPI application and outbound httpx calls."""
    if not is_tracing_enabled():
        logger.debug("Tracing disabled, skipping instrumentation")
        return

    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    logger.info("FastAPI and httpx instrumentation enabled")


def shutdown_tracing() -> None:
    """Flush remaining spans and shut the provider down."""
    global _tracer_provider, _is_initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
        _is_initialized = False
        logger.info("OpenTelemetry tracing shut down")

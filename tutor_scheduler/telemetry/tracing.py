# tutor_scheduler/telemetry/tracing.py
from typing import Optional

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = structlog.get_logger(__name__)


def configure_tracer(
    service_name: str, otlp_endpoint: Optional[str] = None
) -> None:
    """
    Configure OpenTelemetry tracing.
    If an OTLP endpoint is given, we send spans there.
    Otherwise spans go to the console exporter.
    """
    # Only configure once
    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        return

    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        logger.info("otlp_exporter_initialized", endpoint=otlp_endpoint)
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
    else:
        logger.info("tracer_initialized_without_remote_exporter")
        exporter = ConsoleSpanExporter()

    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def get_tracer(name: str):
    return trace.get_tracer(name)

# tutor_scheduler/telemetry/__init__.py
from .logging import configure_logging
from .tracing import configure_tracer, get_tracer

__all__ = ["configure_logging", "configure_tracer", "get_tracer"]

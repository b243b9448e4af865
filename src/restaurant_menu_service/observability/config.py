"""Logging and OpenTelemetry setup for the menu service."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "menu-svc"
METRIC_EXPORT_INTERVAL_MS = 60000

# Driver loggers that flood the output below WARNING
_NOISY_LOGGERS = ("pymongo", "motor")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with the service name."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME))


def get_service_resource() -> Resource:
    """Describe this process for exported telemetry.

    Returns:
        Resource carrying the service name and deployment environment
    """
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }
    )


def _collector_url(signal: str) -> str:
    base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318").rstrip("/")
    return f"{base}/v1/{signal}"


def setup_tracing(resource: Resource) -> None:
    """Export spans in batches to the OTLP/HTTP collector."""
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=_collector_url("traces"))))
    trace.set_tracer_provider(provider)

    logger.info(f"Span export enabled: {_collector_url('traces')}")


def setup_metrics(resource: Resource) -> None:
    """Export menu metrics to the OTLP/HTTP collector on a fixed interval."""
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=_collector_url("metrics")),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger.info(f"Metric export enabled: {_collector_url('metrics')}")


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Install telemetry providers and instrument MongoDB and FastAPI.

    Args:
        app: FastAPI application to instrument, if any
        enable_exporters: Send telemetry to the collector; always off when
            ENVIRONMENT is "test"
    """
    resource = get_service_resource()
    exporting = enable_exporters and os.getenv("ENVIRONMENT", "development") != "test"

    if exporting:
        setup_tracing(resource)
        setup_metrics(resource)
    else:
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    # motor issues its commands through pymongo
    PymongoInstrumentor().instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    logger.info(f"Observability ready (exporters: {'on' if exporting else 'off'}, app instrumented: {app is not None})")


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines to stderr from the root logger.

    Existing root handlers are replaced. MongoDB driver loggers stay at
    WARNING unless DEBUG is requested.

    Args:
        log_level: Level name used when LOG_LEVEL is not set
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(ServiceJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s", timestamp=True))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    driver_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)

    logger.info(f"JSON logging configured at {level_name}")

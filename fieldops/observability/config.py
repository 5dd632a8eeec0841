"""
OpenTelemetry Configuration

Sets up distributed tracing and structured logging for the fieldops rule
engine and its service shell.
"""

import os
import logging
from typing import Callable, Dict, Optional, Tuple
from pythonjsonlogger import jsonlogger
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

SERVICE_NAME = 'fieldops'

SAMPLING_RATIOS = {
    'production': 0.1,
    'staging': 0.5,
}

LOG_LEVELS = {
    'production': logging.WARNING,
    'staging': logging.INFO,
    'development': logging.DEBUG,
    'test': logging.WARNING,
}


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON log lines with trace correlation and flattened ``extra_fields``."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("json_default", str)
        super().__init__(*args, **kwargs)

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_record["trace_id"] = format(span_context.trace_id, "032x")
            log_record["span_id"] = format(span_context.span_id, "016x")

        extra_fields = log_record.pop("extra_fields", None)
        if isinstance(extra_fields, dict):
            log_record.update(extra_fields)


def _otlp_exporter(environment: str) -> Optional[SpanExporter]:
    endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if environment == 'production':
        # Production ships only when a collector is configured
        if not endpoint:
            return None
        return OTLPSpanExporter(
            endpoint=endpoint,
            headers={"Authorization": f"Bearer {os.getenv('OTEL_API_KEY', '')}"}
        )
    return OTLPSpanExporter(endpoint=endpoint or 'http://localhost:4317')


def _console_exporter(environment: str) -> Optional[SpanExporter]:
    return ConsoleSpanExporter()


# Exporter factory and batch size per environment; unlisted environments export nothing
SPAN_EXPORTERS: Dict[str, Tuple[Callable[[str], Optional[SpanExporter]], Optional[int]]] = {
    'production': (_otlp_exporter, 512),
    'staging': (_otlp_exporter, None),
    'development': (_console_exporter, None),
}


def build_span_processor(environment: str) -> Optional[BatchSpanProcessor]:
    """Batch processor for the environment's exporter, or None when spans stay local."""
    factory, batch_size = SPAN_EXPORTERS.get(environment, (None, None))
    exporter = factory(environment) if factory else None
    if exporter is None:
        return None
    if batch_size:
        return BatchSpanProcessor(exporter, max_export_batch_size=batch_size)
    return BatchSpanProcessor(exporter)


def setup_observability() -> Optional[TracerProvider]:
    """Initialize OpenTelemetry instrumentation based on environment configuration."""
    environment = os.getenv('ENVIRONMENT', 'development')
    otel_enabled = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'

    setup_structured_logging(environment)

    if not otel_enabled:
        return None

    tracer_provider = TracerProvider(
        # 100% sampling outside staging and production
        sampler=TraceIdRatioBased(SAMPLING_RATIOS.get(environment, 1.0)),
        resource=Resource.create({
            "service.name": SERVICE_NAME,
            "service.version": os.getenv('SERVICE_VERSION', '1.0.0'),
            "deployment.environment": environment
        })
    )

    processor = build_span_processor(environment)
    if processor is not None:
        tracer_provider.add_span_processor(processor)

    trace.set_tracer_provider(tracer_provider)

    return tracer_provider


def setup_structured_logging(environment: str):
    """Configure structured JSON logging with trace correlation."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logging.basicConfig(
        level=LOG_LEVELS.get(environment, logging.INFO),
        handlers=[handler],
        force=True
    )

    if environment == 'production':
        # Rejections are logged at WARNING; rule traces are noise here
        logging.getLogger('fieldops.domain').setLevel(logging.WARNING)

    elif environment == 'development':
        logging.getLogger('fieldops.domain').setLevel(logging.DEBUG)
        logging.getLogger('fieldops.services').setLevel(logging.DEBUG)

"""OpenTelemetry wiring for the order API (opt-in via TRACING_ENABLED)."""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from orderpay.common.config import CommonSettings
from orderpay.common.logging import logger


def enable_tracing(app: FastAPI, config: CommonSettings) -> bool:
    """Export request spans over OTLP/HTTP when tracing is switched on.

    Health and scrape endpoints are excluded so probes do not flood the
    collector. Returns whether instrumentation was attached.
    """

    if not config.tracing_enabled:
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": config.service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otel_exporter_otlp_endpoint))
    )
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, excluded_urls="api/health,metrics")
    logger.info("tracing enabled endpoint=%s", config.otel_exporter_otlp_endpoint)
    return True

from typing import Sequence

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from palm_proxy.upstream.route import router
from palm_proxy.vars import OTLP_ENDPOINT, OTLP_HEADERS, SERVICE_NAME

app = FastAPI()
instrumentator = Instrumentator()

# /metrics has to be registered ahead of the catch-all proxy route
instrumentator.instrument(app).expose(app)


class FilteringSpanExporter(SpanExporter):
    """
    Drops the per-chunk ``http.response.body`` spans the ASGI instrumentation
    emits while an upstream answer is being streamed back.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        kept = [span for span in spans if not is_body_chunk_span(span)]
        if kept:
            return self.exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


def is_body_chunk_span(span: ReadableSpan) -> bool:
    return bool(
        span.attributes
        and span.attributes.get("asgi.event.type") == "http.response.body"
    )


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=OTLP_HEADERS or None,
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )

FastAPIInstrumentor.instrument_app(app)

app_info = Info("palm_proxy_app", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

app.include_router(router)

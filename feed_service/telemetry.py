"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics for the counter cache and service failures

Tracing is configured once at startup; metrics are module-level collectors.
"""
import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter

from feed_service.config import Settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
COUNT_CACHE_REQUESTS = Counter(
    "feed_count_cache_requests_total",
    "Counter cache lookups by counter kind and outcome",
    ["counter", "result"],  # counter: like|comment, result: hit|miss
)

COUNT_CACHE_WRITE_FAILURES = Counter(
    "feed_count_cache_write_failures_total",
    "Best-effort cache writes (populate / invalidate) that failed and were ignored",
    ["operation"],  # 'populate' or 'invalidate'
)

SERVICE_ERRORS = Counter(
    "feed_service_errors_total",
    "Failed feed service operations",
    ["action", "kind"],
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing(settings: Settings, engine=None) -> None:  # noqa: ANN001
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    if not settings.tracing_enabled:
        logger.info("OTel tracing disabled")
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Auto-instrument the store and cache drivers so their spans appear in traces
    RedisInstrumentor().instrument()
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

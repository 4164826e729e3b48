"""
Prometheus metrics endpoint.

Exposes request and ingestion metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["metrics"])

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'hookrelay_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'hookrelay_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Ingestion Metrics
# ============================================

webhooks_received = Counter(
    'hookrelay_webhooks_received_total',
    'Inbound webhook calls by outcome',
    ['outcome']  # accepted, rejected, not_found, failed
)

webhook_ingest_duration = Histogram(
    'hookrelay_webhook_ingest_duration_seconds',
    'Time to authenticate, capture and record an inbound call',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.
    
    ``endpoint`` should be the route template, not the raw path.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()
    
    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_ingestion(outcome: str, duration_seconds: float | None = None):
    """Record the outcome of one inbound webhook call."""
    webhooks_received.labels(outcome=outcome).inc()
    if duration_seconds is not None:
        webhook_ingest_duration.observe(duration_seconds)


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.
    
    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

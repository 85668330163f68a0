"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
generation_requests_total = Counter(
    "generation_requests_total",
    "Total provider attempts by outcome",
    ["provider", "status"],  # status: success, validation, configuration, upstream, no_data
)

generation_fallbacks_total = Counter(
    "generation_fallbacks_total",
    "Total fallback chains taken",
    ["chain"],  # openai->gemini-flash, gemini-pro->gemini-flash
)

subject_detection_total = Counter(
    "subject_detection_total",
    "Subject-count detections for auto model selection",
    ["outcome"],  # detected, defaulted
)

# Histograms
provider_request_duration_seconds = Histogram(
    "provider_request_duration_seconds",
    "Provider call duration",
    ["provider"],
    buckets=[1, 5, 10, 20, 30, 45, 60],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )

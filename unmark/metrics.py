"""
Prometheus metrics for the unmark pipeline.
Exposes run outcomes, durations and detection results.

The CLI can serve them over a local HTTP server; the API exposes
them on /metrics through the FastAPI instrumentator.
"""
from prometheus_client import (
    Counter, Histogram, Info,
    start_http_server,
)
import logging

logger = logging.getLogger(__name__)

# Info metrics
pipeline_info = Info('unmark_pipeline', 'Pipeline information')

# Run metrics
runs_total = Counter('unmark_runs_total', 'Pipeline runs', ['mode', 'status'])
run_duration_seconds = Histogram(
    'unmark_run_duration_seconds',
    'Pipeline run duration',
    ['mode'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]
)

# Detection metrics
detections_total = Counter('unmark_detections_total', 'Automatic detection attempts', ['outcome'])

# Reconstruction metrics
regions_reconstructed = Counter(
    'unmark_regions_reconstructed_total', 'Regions reconstructed', ['method']
)

_server_started = False


def start_metrics_server(port: int = 9090, version: str = "unknown"):
    """Start the local metrics HTTP server (once per process)."""
    global _server_started
    if _server_started:
        return
    pipeline_info.info({'version': version})
    start_http_server(port)
    _server_started = True
    logger.info(f"Metrics server started on port {port}")


def record_run(mode: str, status: str, duration: float):
    """Record a finished pipeline run."""
    runs_total.labels(mode=mode, status=status).inc()
    run_duration_seconds.labels(mode=mode).observe(duration)


def record_detection(found: bool):
    detections_total.labels(outcome="found" if found else "not_found").inc()


def record_region(method: str):
    regions_reconstructed.labels(method=method).inc()

"""Prometheus metrics for the prediction service.

All instruments live on a dedicated registry so the exposition only
contains service metrics and repeated imports don't clash with the
process-wide default registry.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

HTTP_REQUESTS = Counter(
    "mlops_http_requests_total",
    "HTTP requests handled by the API",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "mlops_http_request_duration_seconds",
    "HTTP request latency",
    ["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

PREDICTIONS = Counter(
    "mlops_predictions_total",
    "Predictions served",
    ["model_name"],
    registry=REGISTRY,
)

PREDICTION_ERRORS = Counter(
    "mlops_prediction_errors_total",
    "Prediction requests that failed",
    ["reason"],
    registry=REGISTRY,
)

TRAINING_RUNS = Counter(
    "mlops_training_runs_total",
    "Training runs by outcome",
    ["task", "status"],
    registry=REGISTRY,
)

REGISTERED_MODELS = Gauge(
    "mlops_registered_models",
    "Models currently held in model storage",
    registry=REGISTRY,
)


def render_metrics() -> tuple[bytes, str]:
    """Render the registry in the Prometheus text exposition format.

    Returns:
        Tuple of (payload, content type)
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST

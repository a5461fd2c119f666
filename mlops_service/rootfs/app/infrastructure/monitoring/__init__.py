"""Prometheus monitoring for the prediction service."""

from .metrics import (
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS,
    PREDICTION_ERRORS,
    PREDICTIONS,
    REGISTERED_MODELS,
    REGISTRY,
    TRAINING_RUNS,
    render_metrics,
)

__all__ = [
    "HTTP_REQUEST_DURATION",
    "HTTP_REQUESTS",
    "PREDICTION_ERRORS",
    "PREDICTIONS",
    "REGISTERED_MODELS",
    "REGISTRY",
    "TRAINING_RUNS",
    "render_metrics",
]

"""Infrastructure layer for the MLOps service.

This package contains implementations of domain interfaces
that interact with external systems (XGBoost, MLflow, file storage,
Prometheus, Kubernetes manifests, HTTP API and CLI).
"""

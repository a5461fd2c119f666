"""Domain layer for the MLOps service.

This package contains the core business logic for ML operations,
following Domain-Driven Design (DDD) principles.

The domain layer is pure Python with no external dependencies on
Flask, MLflow, XGBoost, or any infrastructure concerns.
"""

"""XGBoost predictor adapter.

Infrastructure adapter that implements IMLModelPredictor using XGBoost.
"""

import logging
from datetime import datetime
from typing import Any

import numpy as np
from domain.interfaces import IMLModelPredictor, IModelStorage
from domain.value_objects import ModelInfo, PredictionRequest, PredictionResult

from .file_model_storage import ModelNotFoundError

_LOGGER = logging.getLogger(__name__)


class XGBoostPredictor(IMLModelPredictor):
    """XGBoost implementation of ML model predictor.

    This adapter uses trained XGBoost models to make predictions
    with feature contract enforcement.
    """

    def __init__(self, storage: IModelStorage) -> None:
        """Initialize the XGBoost predictor.

        Args:
            storage: Model storage implementation
        """
        self._storage = storage
        # Cache holds: model_id, model, model_info
        self._cached_model: tuple[str, Any, ModelInfo] | None = None

    async def predict(self, request: PredictionRequest) -> PredictionResult:
        """Make a prediction using XGBoost.

        Args:
            request: Prediction request with input features

        Returns:
            PredictionResult with the predicted value and metadata
        """
        model_id = await self._resolve_model_id(request)
        model, model_info = await self._get_model(model_id)
        feature_names = model_info.feature_names

        missing_features: list[str] = []
        unknown_features: list[str] = []
        if request.is_positional:
            if len(request.features) != len(feature_names):
                raise ValueError(
                    f"Model {model_id} expects {len(feature_names)} features "
                    f"({', '.join(feature_names)}), got {len(request.features)}"
                )
            row = [float(value) for value in request.features]
        else:
            missing_features = [name for name in feature_names if name not in request.features]
            unknown_features = sorted(set(request.features) - set(feature_names))
            if missing_features:
                _LOGGER.warning(
                    "Model %s expects features missing from the request: %s. "
                    "They will be treated as missing values.",
                    model_id,
                    ", ".join(missing_features),
                )
            if unknown_features:
                _LOGGER.debug(
                    "Ignoring features unknown to model %s: %s",
                    model_id,
                    ", ".join(unknown_features),
                )
            row = [float(request.features.get(name, np.nan)) for name in feature_names]

        features = np.array([row], dtype=float)

        probabilities = None
        if model_info.task == "classification":
            proba = model.predict_proba(features)[0]
            classes = model_info.classes or ()
            probabilities = {
                label: min(1.0, max(0.0, float(p))) for label, p in zip(classes, proba)
            }
            prediction: float | str = classes[int(np.argmax(proba))]
        else:
            prediction = float(model.predict(features)[0])

        return PredictionResult(
            prediction=prediction,
            model_id=model_id,
            model_version=model_info.version,
            timestamp=datetime.now(),
            probabilities=probabilities,
            feature_mismatch=bool(missing_features),
            missing_features=missing_features or None,
            unknown_features=unknown_features or None,
        )

    async def has_trained_model(self) -> bool:
        """Check if a servable model is available.

        Returns:
            True if at least one non-archived model exists
        """
        return await self._storage.get_serving_model_id() is not None

    def invalidate_cache(self) -> None:
        """Drop the cached model."""
        self._cached_model = None

    async def _resolve_model_id(self, request: PredictionRequest) -> str:
        """Pick the model answering this request."""
        if request.model_id:
            return request.model_id

        model_id = None
        if request.model_name:
            model_id = await self._storage.get_serving_model_id(request.model_name)
            if model_id is None:
                raise ModelNotFoundError(f"No servable model registered as {request.model_name!r}")
        else:
            model_id = await self._storage.get_serving_model_id()
        if model_id is None:
            raise ValueError("No trained model available")
        return model_id

    async def _get_model(self, model_id: str) -> tuple[Any, ModelInfo]:
        """Get model and its info from cache or load from storage.

        Args:
            model_id: Model identifier

        Returns:
            Tuple of (model, model_info)
        """
        if self._cached_model is not None and self._cached_model[0] == model_id:
            return self._cached_model[1], self._cached_model[2]

        model, model_info = await self._storage.load_model(model_id)
        self._cached_model = (model_id, model, model_info)

        _LOGGER.debug(
            "Loaded model %s with %d features: %s",
            model_id,
            len(model_info.feature_names),
            model_info.feature_names,
        )
        return model, model_info

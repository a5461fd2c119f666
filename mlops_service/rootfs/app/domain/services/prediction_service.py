"""Prediction service.

Domain service for orchestrating model training and predictions.
"""

from domain.interfaces import IMLModelPredictor, IMLModelTrainer, IModelStorage
from domain.value_objects import (
    ModelInfo,
    PredictionRequest,
    PredictionResult,
    TrainingConfig,
    TrainingData,
)


class PredictionService:
    """Service for model training and predictions.

    This service orchestrates training and prediction operations
    through the provided interfaces.
    """

    def __init__(
        self,
        trainer: IMLModelTrainer,
        predictor: IMLModelPredictor,
        storage: IModelStorage,
    ) -> None:
        """Initialize the prediction service.

        Args:
            trainer: ML model trainer implementation
            predictor: ML model predictor implementation
            storage: Model storage implementation
        """
        self._trainer = trainer
        self._predictor = predictor
        self._storage = storage

    async def train_model(
        self, training_data: TrainingData, config: TrainingConfig | None = None
    ) -> ModelInfo:
        """Train a new model.

        Args:
            training_data: Training data with features and labels
            config: Training configuration

        Returns:
            Information about the trained model
        """
        return await self._trainer.train(training_data, config)

    async def predict(self, request: PredictionRequest) -> PredictionResult:
        """Predict the target for the given features.

        Args:
            request: Prediction request with input features

        Returns:
            Prediction result
        """
        return await self._predictor.predict(request)

    async def is_ready(self) -> bool:
        """Check if the service is ready to make predictions.

        Returns:
            True if a servable model is available
        """
        return await self._predictor.has_trained_model()

    async def get_model_info(self, model_id: str | None = None) -> ModelInfo | None:
        """Get information about a model.

        Args:
            model_id: Model ID or None for the serving model

        Returns:
            Model information or None if not found
        """
        if model_id is None:
            model_id = await self._storage.get_serving_model_id()
            if model_id is None:
                return None

        try:
            return await self._storage.get_model_info(model_id)
        except LookupError:
            return None

    def model_changed(self) -> None:
        """Notify the predictor that stored models changed."""
        self._predictor.invalidate_cache()

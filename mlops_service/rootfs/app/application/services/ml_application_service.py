"""ML Application Service.

Main application service that coordinates domain and infrastructure
for dataset versioning, training, promotion and prediction use cases.
"""

import logging
from datetime import datetime
from pathlib import Path

from domain.interfaces import (
    IDatasetLoader,
    IDatasetRegistry,
    IMLModelPredictor,
    IMLModelTrainer,
    IModelStorage,
)
from domain.services import PredictionService, PromotionGate, SyntheticDataGenerator
from domain.value_objects import (
    DatasetStatus,
    DatasetVersion,
    ModelInfo,
    ModelStage,
    PipelineResult,
    PredictionRequest,
    PredictionResult,
    PromotionDecision,
    TrainingConfig,
    TrainingData,
)

_LOGGER = logging.getLogger(__name__)


class MLApplicationService:
    """Application service for ML operations.

    This service is the main entry point for all ML operations.
    It orchestrates domain services and infrastructure adapters.
    """

    def __init__(
        self,
        trainer: IMLModelTrainer,
        predictor: IMLModelPredictor,
        storage: IModelStorage,
        dataset_registry: IDatasetRegistry | None = None,
        dataset_loader: IDatasetLoader | None = None,
        promotion_gate: PromotionGate | None = None,
    ) -> None:
        """Initialize the ML application service.

        Args:
            trainer: ML model trainer implementation
            predictor: ML model predictor implementation
            storage: Model storage implementation
            dataset_registry: Dataset versioning implementation (optional)
            dataset_loader: Dataset file loader implementation (optional)
            promotion_gate: Gate for automatic promotion (default gate when omitted)
        """
        self._prediction_service = PredictionService(
            trainer=trainer,
            predictor=predictor,
            storage=storage,
        )
        self._storage = storage
        self._dataset_registry = dataset_registry
        self._dataset_loader = dataset_loader
        self._promotion_gate = promotion_gate or PromotionGate()
        self._synthetic_data_generator = SyntheticDataGenerator()

    async def train_with_data(
        self,
        training_data: TrainingData,
        config: TrainingConfig | None = None,
    ) -> ModelInfo:
        """Train a model with provided training data.

        Args:
            training_data: Training data with features and labels
            config: Training configuration

        Returns:
            Information about the trained model
        """
        _LOGGER.info(
            "Starting model training with %d samples",
            training_data.size,
        )
        model_info = await self._prediction_service.train_model(training_data, config)
        self._prediction_service.model_changed()
        _LOGGER.info(
            "Model training completed: %s (v%d), metrics: %s",
            model_info.model_id,
            model_info.version,
            model_info.metrics,
        )
        return model_info

    async def train_with_synthetic_data(
        self,
        num_samples: int = 100,
        num_features: int = 4,
        config: TrainingConfig | None = None,
    ) -> ModelInfo:
        """Train a model using generated synthetic data.

        This is useful for validating the deployment end to end
        before a real dataset is available.

        Args:
            num_samples: Number of synthetic samples to generate
            num_features: Number of features per sample
            config: Training configuration (its task picks the label type)

        Returns:
            Information about the trained model
        """
        config = config or TrainingConfig()
        _LOGGER.info("Generating %d synthetic %s samples", num_samples, config.task)
        training_data = self._synthetic_data_generator.generate(
            num_samples, num_features=num_features, task=config.task
        )
        return await self.train_with_data(training_data, config)

    async def train_from_dataset(
        self,
        path: str | Path,
        target_column: str,
        config: TrainingConfig | None = None,
        feature_columns: list[str] | None = None,
    ) -> ModelInfo:
        """Train a model on a versioned dataset file.

        The dataset is (re)versioned when untracked or modified so the
        resulting model always records the content hash it was trained on.

        Args:
            path: Dataset file path
            target_column: Column holding the label
            config: Training configuration
            feature_columns: Columns to use as features (all others when omitted)

        Returns:
            Information about the trained model
        """
        config = config or TrainingConfig()
        version = self.version_dataset(path)
        training_data = self._require_loader().load(
            self._require_registry().resolve(path),
            target_column=target_column,
            feature_columns=feature_columns,
            task=config.task,
            dataset_version=version,
        )
        return await self.train_with_data(training_data, config)

    async def run_pipeline(
        self,
        path: str | Path,
        target_column: str,
        config: TrainingConfig | None = None,
        auto_promote: bool = True,
        feature_columns: list[str] | None = None,
    ) -> PipelineResult:
        """Version the dataset, train, evaluate and optionally promote.

        Args:
            path: Dataset file path
            target_column: Column holding the label
            config: Training configuration
            auto_promote: Promote to Production when the gate approves
            feature_columns: Columns to use as features (all others when omitted)

        Returns:
            Pipeline outcome
        """
        config = config or TrainingConfig()
        _LOGGER.info("Running pipeline for %s (model: %s)", path, config.model_name)

        model_info = await self.train_from_dataset(
            path, target_column, config, feature_columns=feature_columns
        )
        decision = await self.evaluate_promotion(model_info)

        promoted = False
        if decision.approved and auto_promote:
            model_info = await self.promote_model(model_info.model_id, ModelStage.PRODUCTION)
            promoted = True
        elif not decision.approved:
            _LOGGER.warning(
                "Model %s not promoted: %s",
                model_info.model_id,
                "; ".join(decision.reasons),
            )

        dataset_version = self._require_registry().get_version(path)
        return PipelineResult(
            dataset_version=dataset_version,
            model_info=model_info,
            decision=decision,
            promoted=promoted,
        )

    def version_dataset(self, path: str | Path) -> DatasetVersion:
        """Ensure a dataset file is versioned and return its version.

        Untracked or modified files get a new version; tracked files that
        are absent from the workspace are restored from the cache.

        Raises:
            DatasetError: If a missing file cannot be restored
        """
        registry = self._require_registry()
        status = registry.status(path)
        if status == DatasetStatus.MISSING:
            _LOGGER.info("Dataset %s is missing, restoring it from the cache", path)
            return registry.checkout(path)
        if status in (DatasetStatus.UNTRACKED, DatasetStatus.MODIFIED):
            _LOGGER.info("Dataset %s is %s, recording new version", path, status.value)
            return registry.add(path)
        return registry.get_version(path)

    async def evaluate_promotion(self, candidate: ModelInfo) -> PromotionDecision:
        """Evaluate a model against the current Production model of its name."""
        baseline = None
        for info in await self._storage.list_models(candidate.model_name):
            if info.stage == ModelStage.PRODUCTION and info.model_id != candidate.model_id:
                baseline = info
                break
        return self._promotion_gate.evaluate(candidate, baseline)

    async def promote_model(self, model_id: str, stage: ModelStage) -> ModelInfo:
        """Move a model to a registry stage.

        Args:
            model_id: Model to transition
            stage: Target stage

        Returns:
            Updated model information
        """
        _LOGGER.info("Transitioning model %s to %s", model_id, stage.value)
        info = await self._storage.transition_stage(model_id, stage)
        self._prediction_service.model_changed()
        return info

    async def predict(self, request: PredictionRequest) -> PredictionResult:
        """Make a prediction.

        Args:
            request: Prediction request with input features

        Returns:
            Prediction result
        """
        _LOGGER.debug(
            "Predicting with model_id=%s model_name=%s (%d features)",
            request.model_id,
            request.model_name,
            len(request.features),
        )
        result = await self._prediction_service.predict(request)
        _LOGGER.debug("Prediction result: %s (model %s)", result.prediction, result.model_id)
        return result

    async def is_ready(self) -> bool:
        """Check if the service is ready to make predictions.

        Returns:
            True if a servable model is available
        """
        return await self._prediction_service.is_ready()

    async def get_status(self) -> dict:
        """Get the current status of the ML service.

        Returns:
            Dictionary with status information
        """
        ready = await self.is_ready()
        models = await self._storage.list_models()

        status = {
            "ready": ready,
            "model_count": len(models),
            "production_models": sorted(
                {m.model_name for m in models if m.stage == ModelStage.PRODUCTION}
            ),
            "dataset_versioning_available": self._dataset_registry is not None,
            "timestamp": datetime.now().isoformat(),
        }

        if ready:
            serving = await self._prediction_service.get_model_info()
            if serving:
                status["serving_model"] = {
                    "id": serving.model_id,
                    "name": serving.model_name,
                    "version": serving.version,
                    "stage": serving.stage.value,
                    "created_at": serving.created_at.isoformat(),
                    "training_samples": serving.training_samples,
                    "metrics": serving.metrics,
                }

        return status

    async def get_model_info(self, model_id: str | None = None) -> ModelInfo | None:
        """Get information about a specific model.

        Args:
            model_id: Model ID or None for the serving model

        Returns:
            Model information or None if not found
        """
        return await self._prediction_service.get_model_info(model_id)

    async def list_models(self, model_name: str | None = None) -> list[ModelInfo]:
        """List available models, newest first.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            List of model information objects
        """
        return await self._storage.list_models(model_name)

    async def delete_model(self, model_id: str) -> None:
        """Delete a model.

        Args:
            model_id: Model ID to delete
        """
        _LOGGER.info("Deleting model: %s", model_id)
        await self._storage.delete_model(model_id)
        self._prediction_service.model_changed()

    def _require_registry(self) -> IDatasetRegistry:
        if self._dataset_registry is None:
            raise RuntimeError(
                "Dataset registry not configured. Cannot version datasets."
            )
        return self._dataset_registry

    def _require_loader(self) -> IDatasetLoader:
        if self._dataset_loader is None:
            raise RuntimeError(
                "Dataset loader not configured. Cannot load datasets."
            )
        return self._dataset_loader

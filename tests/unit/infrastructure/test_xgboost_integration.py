"""Integration tests for XGBoost training and prediction."""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest
from domain.services import SyntheticDataGenerator
from domain.value_objects import (
    DatasetVersion,
    ModelStage,
    PredictionRequest,
    TrainingConfig,
    TrainingData,
    TrainingDataPoint,
)
from infrastructure.adapters import (
    FileModelStorage,
    ModelNotFoundError,
    XGBoostPredictor,
    XGBoostTrainer,
)


class TestXGBoostIntegration:
    """Integration tests for XGBoost training and prediction pipeline."""

    @pytest.fixture
    def temp_storage_path(self) -> Generator[str, None, None]:
        """Create a temporary directory for model storage."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def storage(self, temp_storage_path: str) -> FileModelStorage:
        """Create a file model storage instance."""
        return FileModelStorage(temp_storage_path)

    @pytest.fixture
    def trainer(self, storage: FileModelStorage) -> XGBoostTrainer:
        """Create an XGBoost trainer instance."""
        return XGBoostTrainer(storage)

    @pytest.fixture
    def predictor(self, storage: FileModelStorage) -> XGBoostPredictor:
        """Create an XGBoost predictor instance."""
        return XGBoostPredictor(storage)

    @pytest.mark.asyncio
    async def test_train_regression_creates_model(
        self,
        trainer: XGBoostTrainer,
        storage: FileModelStorage,
    ) -> None:
        """Test training a regression model with synthetic data."""
        training_data = SyntheticDataGenerator(seed=42).generate(num_samples=50)

        model_info = await trainer.train(training_data)

        assert model_info.model_id.startswith("xgb_default_")
        assert model_info.training_samples == 50
        assert model_info.version == 1
        assert model_info.stage == ModelStage.NONE
        for metric in ("rmse", "mae", "r2", "training_samples", "validation_samples"):
            assert metric in model_info.metrics
        assert model_info.metrics["training_samples"] + model_info.metrics["validation_samples"] == 50
        assert await storage.get_latest_model_id() == model_info.model_id

    @pytest.mark.asyncio
    async def test_versions_increment_per_model_name(self, trainer: XGBoostTrainer) -> None:
        """Test that each training run registers a new version."""
        data = SyntheticDataGenerator(seed=1).generate(num_samples=40)

        first = await trainer.train(data, TrainingConfig(model_name="churn"))
        second = await trainer.train(data, TrainingConfig(model_name="churn"))
        other = await trainer.train(data, TrainingConfig(model_name="prices"))

        assert (first.version, second.version, other.version) == (1, 2, 1)
        assert first.model_id != second.model_id

    @pytest.mark.asyncio
    async def test_too_few_samples_raises(self, trainer: XGBoostTrainer) -> None:
        """Test the minimum sample requirement."""
        data = SyntheticDataGenerator(seed=1).generate(num_samples=5)

        with pytest.raises(ValueError, match="At least 10 samples"):
            await trainer.train(data)

    @pytest.mark.asyncio
    async def test_regression_with_label_targets_raises(self, trainer: XGBoostTrainer) -> None:
        """Test that regression needs numeric targets."""
        data = SyntheticDataGenerator(seed=1).generate(num_samples=20, task="classification")

        with pytest.raises(ValueError, match="numeric"):
            await trainer.train(data)

    @pytest.mark.asyncio
    async def test_classification_needs_two_classes(self, trainer: XGBoostTrainer) -> None:
        """Test that a single-class dataset is rejected."""
        data = TrainingData.from_sequence([
            TrainingDataPoint(features={"x": float(i)}, target="only") for i in range(20)
        ])

        with pytest.raises(ValueError, match="at least 2 classes"):
            await trainer.train(data, TrainingConfig(task="classification"))

    @pytest.mark.asyncio
    async def test_predict_with_trained_model(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test making predictions with a trained model."""
        model_info = await trainer.train(SyntheticDataGenerator(seed=42).generate(num_samples=100))

        request = PredictionRequest(
            features={"feature_0": 1.0, "feature_1": -2.0, "feature_2": 3.0, "feature_3": 0.5}
        )
        result = await predictor.predict(request)

        assert isinstance(result.prediction, float)
        assert result.model_id == model_info.model_id
        assert result.model_version == 1
        assert result.feature_mismatch is False
        assert result.probabilities is None

    @pytest.mark.asyncio
    async def test_predict_follows_linear_signal(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test that predictions track the target of known samples."""
        points = [
            TrainingDataPoint(features={"x": float(i)}, target=float(i) * 2.0)
            for i in range(100)
        ]
        await trainer.train(TrainingData.from_sequence(points))

        low = await predictor.predict(PredictionRequest(features={"x": 5.0}))
        high = await predictor.predict(PredictionRequest(features={"x": 90.0}))

        assert low.prediction < high.prediction

    @pytest.mark.asyncio
    async def test_positional_features(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test prediction with features ordered like the contract."""
        await trainer.train(SyntheticDataGenerator(seed=3).generate(num_samples=60, num_features=2))

        result = await predictor.predict(PredictionRequest(features=[1.0, 2.0]))
        assert isinstance(result.prediction, float)

        with pytest.raises(ValueError, match="expects 2 features"):
            await predictor.predict(PredictionRequest(features=[1.0]))

    @pytest.mark.asyncio
    async def test_feature_mismatch_is_reported(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test that missing and unknown features are reported, not fatal."""
        await trainer.train(SyntheticDataGenerator(seed=3).generate(num_samples=60, num_features=2))

        result = await predictor.predict(PredictionRequest(features={"feature_0": 1.0, "extra": 3.0}))

        assert result.feature_mismatch is True
        assert result.missing_features == ["feature_1"]
        assert result.unknown_features == ["extra"]

    @pytest.mark.asyncio
    async def test_classification_returns_label_and_probabilities(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test classifier training and prediction."""
        data = SyntheticDataGenerator(seed=11).generate(num_samples=200, task="classification")
        model_info = await trainer.train(data, TrainingConfig(model_name="clf", task="classification"))

        assert model_info.classes == ("negative", "positive")
        assert "accuracy" in model_info.metrics
        assert "f1_macro" in model_info.metrics

        result = await predictor.predict(
            PredictionRequest(
                features={f"feature_{i}": 1.0 for i in range(4)},
                model_name="clf",
            )
        )
        assert result.prediction in ("negative", "positive")
        assert set(result.probabilities) == {"negative", "positive"}
        assert sum(result.probabilities.values()) == pytest.approx(1.0, abs=1e-5)
        assert result.probabilities[result.prediction] >= 0.5

    @pytest.mark.asyncio
    async def test_multiclass_classification(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
    ) -> None:
        """Test that more than two classes switch to a softmax objective."""
        labels = ("a", "b", "c")
        points = [
            TrainingDataPoint(features={"x": float(i % 3) + (i % 7) / 10}, target=labels[i % 3])
            for i in range(90)
        ]
        model_info = await trainer.train(
            TrainingData.from_sequence(points),
            TrainingConfig(model_name="multi", task="classification"),
        )

        assert model_info.hyperparams["objective"] == "multi:softprob"
        result = await predictor.predict(PredictionRequest(features={"x": 2.0}, model_name="multi"))
        assert result.prediction in labels
        assert len(result.probabilities) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("random_state", range(6))
    async def test_multiclass_with_single_sample_class(
        self,
        trainer: XGBoostTrainer,
        random_state: int,
    ) -> None:
        """Test that a class with one sample is always kept for training."""
        targets = ["a"] * 6 + ["b"] + ["c"] * 6
        points = [
            TrainingDataPoint(features={"x": float(i)}, target=target)
            for i, target in enumerate(targets)
        ]

        model_info = await trainer.train(
            TrainingData.from_sequence(points),
            TrainingConfig(model_name="rare", task="classification", random_state=random_state),
        )

        assert model_info.classes == ("a", "b", "c")
        assert model_info.metrics["training_samples"] + model_info.metrics["validation_samples"] == 13
        assert model_info.metrics["validation_samples"] >= 1

    @pytest.mark.asyncio
    async def test_predict_routes_by_model_id_and_name(
        self,
        trainer: XGBoostTrainer,
        predictor: XGBoostPredictor,
        storage: FileModelStorage,
    ) -> None:
        """Test model selection by id, by name and by serving stage."""
        data = SyntheticDataGenerator(seed=5).generate(num_samples=40)
        churn_v1 = await trainer.train(data, TrainingConfig(model_name="churn"))
        churn_v2 = await trainer.train(data, TrainingConfig(model_name="churn"))
        await storage.transition_stage(churn_v1.model_id, ModelStage.PRODUCTION)
        predictor.invalidate_cache()

        features = {f"feature_{i}": 0.0 for i in range(4)}
        by_name = await predictor.predict(PredictionRequest(features=features, model_name="churn"))
        by_id = await predictor.predict(
            PredictionRequest(features=features, model_id=churn_v2.model_id)
        )

        assert by_name.model_id == churn_v1.model_id
        assert by_id.model_id == churn_v2.model_id

    @pytest.mark.asyncio
    async def test_predict_unknown_model(self, predictor: XGBoostPredictor, trainer: XGBoostTrainer) -> None:
        """Test errors for unknown models."""
        await trainer.train(SyntheticDataGenerator(seed=5).generate(num_samples=40))

        with pytest.raises(ModelNotFoundError):
            await predictor.predict(PredictionRequest(features=[1.0], model_id="missing"))
        with pytest.raises(ModelNotFoundError):
            await predictor.predict(PredictionRequest(features=[1.0], model_name="unknown"))

    @pytest.mark.asyncio
    async def test_predict_without_model_raises(self, predictor: XGBoostPredictor) -> None:
        """Test that prediction without any model fails cleanly."""
        assert await predictor.has_trained_model() is False
        with pytest.raises(ValueError, match="No trained model available"):
            await predictor.predict(PredictionRequest(features={"x": 1.0}))

    @pytest.mark.asyncio
    async def test_retrain_keeps_name_and_task(
        self,
        trainer: XGBoostTrainer,
    ) -> None:
        """Test that retraining registers a new version of the same model."""
        data = SyntheticDataGenerator(seed=8).generate(num_samples=60, task="classification")
        original = await trainer.train(
            data,
            TrainingConfig(model_name="clf", task="classification", hyperparams={"max_depth": 3}),
        )

        retrained = await trainer.retrain(original.model_id, data)

        assert retrained.model_name == "clf"
        assert retrained.task == "classification"
        assert retrained.version == 2
        assert retrained.hyperparams["max_depth"] == 3

    @pytest.mark.asyncio
    async def test_tracker_records_run(self, storage: FileModelStorage) -> None:
        """Test that runs are recorded with the experiment tracker."""
        tracker = MagicMock()
        tracker.start_run.return_value = "run-123"
        trainer = XGBoostTrainer(storage, tracker)
        md5 = "0123456789abcdef0123456789abcdef"
        data = SyntheticDataGenerator(seed=2).generate(num_samples=30)
        data = TrainingData.from_sequence(
            data.data_points,
            dataset_version=DatasetVersion(path="train.csv", md5=md5, size=100),
        )

        model_info = await trainer.train(data)

        assert model_info.run_id == "run-123"
        assert model_info.dataset_md5 == md5
        tags = tracker.start_run.call_args.kwargs["tags"]
        assert tags["dataset_md5"] == md5
        tracker.log_params.assert_called_once()
        tracker.log_metrics.assert_called_once()
        tracker.log_model.assert_called_once()
        tracker.end_run.assert_called_once_with(status="FINISHED")

    @pytest.mark.asyncio
    async def test_tracker_run_fails_on_error(self, storage: FileModelStorage) -> None:
        """Test that a failing fit ends the run as FAILED."""
        tracker = MagicMock()
        tracker.start_run.return_value = "run-1"
        tracker.log_metrics.side_effect = RuntimeError("tracking server down")
        trainer = XGBoostTrainer(storage, tracker)

        with pytest.raises(RuntimeError, match="tracking server down"):
            await trainer.train(SyntheticDataGenerator(seed=2).generate(num_samples=30))

        tracker.end_run.assert_called_once_with(status="FAILED")
        assert await storage.list_models() == []

    def test_default_hyperparams(self) -> None:
        """Test default objectives per task."""
        assert XGBoostTrainer.default_hyperparams("regression")["objective"] == "reg:squarederror"
        assert XGBoostTrainer.default_hyperparams("classification")["objective"] == "binary:logistic"

"""XGBoost trainer adapter.

Infrastructure adapter that implements IMLModelTrainer using XGBoost.
"""

import logging
import uuid
from datetime import datetime
from typing import Any

import numpy as np
import xgboost as xgb
from domain.interfaces import IExperimentTracker, IMLModelTrainer, IModelStorage
from domain.value_objects import ModelInfo, TrainingConfig, TrainingData
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
)
from sklearn.model_selection import train_test_split

from .experiment_tracking import NullExperimentTracker

_LOGGER = logging.getLogger(__name__)


class XGBoostTrainer(IMLModelTrainer):
    """XGBoost implementation of ML model trainer.

    This adapter trains XGBoost regressors or classifiers on tabular
    data, records the run with the experiment tracker and registers the
    result in model storage as a new version of the configured model name.
    """

    def __init__(
        self,
        storage: IModelStorage,
        tracker: IExperimentTracker | None = None,
    ) -> None:
        """Initialize the XGBoost trainer.

        Args:
            storage: Model storage implementation
            tracker: Experiment tracker (no-op tracker when omitted)
        """
        self._storage = storage
        self._tracker = tracker or NullExperimentTracker()

    @staticmethod
    def default_hyperparams(task: str) -> dict[str, Any]:
        """Get default XGBoost hyperparameters for a task."""
        params: dict[str, Any] = {
            "max_depth": 6,
            "learning_rate": 0.1,
            "n_estimators": 100,
            "min_child_weight": 1,
            "subsample": 0.8,
            "colsample_bytree": 0.8,
        }
        if task == "classification":
            params["objective"] = "binary:logistic"
        else:
            params["objective"] = "reg:squarederror"
        return params

    async def train(
        self, training_data: TrainingData, config: TrainingConfig | None = None
    ) -> ModelInfo:
        """Train a new XGBoost model.

        Args:
            training_data: Training data containing features and labels
            config: Training configuration (defaults apply when omitted)

        Returns:
            ModelInfo with details about the trained model
        """
        config = config or TrainingConfig()
        if training_data.size < config.min_samples:
            raise ValueError(
                f"At least {config.min_samples} samples are required for training, "
                f"got {training_data.size}"
            )

        model_id = f"xgb_{config.model_name}_{uuid.uuid4().hex[:8]}"
        _LOGGER.info(
            "Training new XGBoost %s model: %s (%d samples)",
            config.task,
            model_id,
            training_data.size,
        )

        feature_names = training_data.feature_names
        X = self._prepare_features(training_data, feature_names)
        y, classes = self._prepare_labels(training_data, config.task)
        hyperparams = self._resolve_hyperparams(config, classes)

        dataset_version = training_data.dataset_version
        tags = {
            "model_id": model_id,
            "model_name": config.model_name,
            "task": config.task,
        }
        if dataset_version is not None:
            tags["dataset_path"] = dataset_version.path
            tags["dataset_md5"] = dataset_version.md5

        run_id = self._tracker.start_run(run_name=model_id, tags=tags)
        try:
            self._tracker.log_params(
                {
                    **hyperparams,
                    "test_size": config.test_size,
                    "random_state": config.random_state,
                    "num_features": len(feature_names),
                }
            )
            model, metrics = self._fit(X, y, config, hyperparams)
            self._tracker.log_metrics(metrics)
            self._tracker.log_model(model, artifact_path="model")

            version = await self._storage.get_next_version(config.model_name)
            model_info = ModelInfo(
                model_id=model_id,
                created_at=datetime.now(),
                training_samples=training_data.size,
                feature_names=feature_names,
                metrics=metrics,
                version=version,
                model_name=config.model_name,
                task=config.task,
                classes=classes,
                dataset_md5=dataset_version.md5 if dataset_version else None,
                run_id=run_id,
                hyperparams=hyperparams,
            )
            await self._storage.save_model(model_id, model, model_info)
        except Exception:
            self._tracker.end_run(status="FAILED")
            raise
        self._tracker.end_run(status="FINISHED")

        _LOGGER.info("Model %s trained with metrics: %s", model_id, metrics)
        return model_info

    async def retrain(
        self,
        model_id: str,
        training_data: TrainingData,
    ) -> ModelInfo:
        """Train a new version of an existing model with new data.

        The new model keeps the name, task and hyperparameters of the
        existing one.

        Args:
            model_id: Identifier of the model to retrain
            training_data: New training data

        Returns:
            ModelInfo with details about the retrained model
        """
        _LOGGER.info("Retraining model %s with %d new samples", model_id, training_data.size)

        _, existing = await self._storage.load_model(model_id)
        config = TrainingConfig(
            model_name=existing.model_name,
            task=existing.task,
            hyperparams=existing.hyperparams,
        )
        return await self.train(training_data, config)

    def _fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        config: TrainingConfig,
        hyperparams: dict[str, Any],
    ) -> tuple[Any, dict[str, float]]:
        """Split, fit and evaluate the model."""
        X_train, X_val, y_train, y_val = self._split(X, y, config)

        if config.task == "classification":
            model = xgb.XGBClassifier(**hyperparams)
        else:
            model = xgb.XGBRegressor(**hyperparams)
        model.fit(X_train, y_train, eval_set=[(X_val, y_val)], verbose=False)

        y_pred = model.predict(X_val)
        if config.task == "classification":
            metrics = {
                "accuracy": float(accuracy_score(y_val, y_pred)),
                "f1_macro": float(f1_score(y_val, y_pred, average="macro", zero_division=0)),
            }
        else:
            metrics = {
                "rmse": float(np.sqrt(mean_squared_error(y_val, y_pred))),
                "mae": float(mean_absolute_error(y_val, y_pred)),
                "r2": float(r2_score(y_val, y_pred)) if len(y_val) > 1 else 0.0,
            }
        metrics["training_samples"] = len(X_train)
        metrics["validation_samples"] = len(X_val)
        return model, metrics

    @staticmethod
    def _split(
        X: np.ndarray,
        y: np.ndarray,
        config: TrainingConfig,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Split into training and validation sets.

        Classification splits are stratified when every class has at least
        two samples. Otherwise the first sample of each class is held in
        the training set so the classifier sees every encoded label.
        """
        if config.task != "classification":
            return train_test_split(
                X, y, test_size=config.test_size, random_state=config.random_state
            )

        _, first_index, counts = np.unique(y, return_index=True, return_counts=True)
        if counts.min() >= 2:
            return train_test_split(
                X,
                y,
                test_size=config.test_size,
                random_state=config.random_state,
                stratify=y,
            )

        rest = np.setdiff1d(np.arange(len(y)), first_index)
        if len(rest) < 2:
            raise ValueError(
                f"Not enough samples to hold out a validation set for {len(first_index)} classes"
            )
        rest_train, val_index = train_test_split(
            rest, test_size=config.test_size, random_state=config.random_state
        )
        train_index = np.concatenate([first_index, rest_train])
        return X[train_index], X[val_index], y[train_index], y[val_index]

    def _resolve_hyperparams(
        self,
        config: TrainingConfig,
        classes: tuple[str, ...] | None,
    ) -> dict[str, Any]:
        """Merge hyperparameter overrides over the task defaults."""
        hyperparams = self.default_hyperparams(config.task)
        hyperparams.update(config.hyperparams or {})
        hyperparams["random_state"] = config.random_state
        if classes is not None and len(classes) > 2:
            hyperparams["objective"] = "multi:softprob"
        return hyperparams

    @staticmethod
    def _prepare_features(
        training_data: TrainingData,
        feature_names: tuple[str, ...],
    ) -> np.ndarray:
        """Build the feature matrix in feature contract order.

        Features absent from a data point are encoded as NaN, which
        XGBoost treats as missing values.
        """
        rows = [
            [dp.features.get(name, np.nan) for name in feature_names]
            for dp in training_data.data_points
        ]
        return np.array(rows, dtype=float)

    @staticmethod
    def _prepare_labels(
        training_data: TrainingData,
        task: str,
    ) -> tuple[np.ndarray, tuple[str, ...] | None]:
        """Build the label vector.

        Returns:
            Tuple of (labels, classes). Classification labels are encoded
            as indices into the sorted class tuple.
        """
        targets = [dp.target for dp in training_data.data_points]

        if task == "regression":
            if any(isinstance(t, str) for t in targets):
                raise ValueError("Regression targets must be numeric")
            return np.array(targets, dtype=float), None

        labels = [str(t) for t in targets]
        classes = tuple(sorted(set(labels)))
        if len(classes) < 2:
            raise ValueError(
                f"Classification requires at least 2 classes, got {len(classes)}"
            )
        lookup = {label: index for index, label in enumerate(classes)}
        return np.array([lookup[label] for label in labels], dtype=int), classes

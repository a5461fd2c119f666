"""Model info value object.

Immutable data structure for ML model metadata.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ModelStage(str, Enum):
    """Registry stage of a model version."""

    NONE = "None"
    STAGING = "Staging"
    PRODUCTION = "Production"
    ARCHIVED = "Archived"

    @classmethod
    def parse(cls, value: str) -> "ModelStage":
        """Parse a stage name case-insensitively."""
        for stage in cls:
            if stage.value.lower() == str(value).strip().lower():
                return stage
        raise ValueError(
            f"stage must be one of {', '.join(s.value for s in cls)}, got {value!r}"
        )


@dataclass(frozen=True)
class ModelInfo:
    """Information about a trained ML model.

    Attributes:
        model_id: Unique identifier for the model
        created_at: When the model was created
        training_samples: Number of samples used for training
        feature_names: Names of features used by the model (feature contract)
        metrics: Validation metrics (e.g., RMSE, R², accuracy)
        version: Registry version, incremented per model name
        model_name: Registered model name
        task: "regression" or "classification"
        stage: Registry stage
        classes: Class labels in encoded order (classification only)
        dataset_md5: Content hash of the training dataset, if versioned
        run_id: Experiment tracking run identifier
        hyperparams: Hyperparameters the model was trained with
    """

    model_id: str
    created_at: datetime
    training_samples: int
    feature_names: tuple[str, ...]
    metrics: dict[str, float]
    version: int = 1
    model_name: str = "default"
    task: str = "regression"
    stage: ModelStage = ModelStage.NONE
    classes: tuple[str, ...] | None = None
    dataset_md5: str | None = None
    run_id: str | None = None
    hyperparams: dict | None = None

    def __post_init__(self) -> None:
        """Validate model info values."""
        if not self.model_id:
            raise ValueError("model_id cannot be empty")
        if self.training_samples < 1:
            raise ValueError(
                f"training_samples must be at least 1, got {self.training_samples}"
            )
        if not self.feature_names:
            raise ValueError("feature_names cannot be empty")
        if self.version < 1:
            raise ValueError(f"version must be at least 1, got {self.version}")
        if self.task == "classification" and (not self.classes or len(self.classes) < 2):
            raise ValueError("classification models need at least 2 classes")

    @property
    def primary_metric(self) -> str:
        """Metric used to compare models of this task."""
        return "rmse" if self.task == "regression" else "accuracy"

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "model_id": self.model_id,
            "model_name": self.model_name,
            "version": self.version,
            "stage": self.stage.value,
            "task": self.task,
            "created_at": self.created_at.isoformat(),
            "training_samples": self.training_samples,
            "feature_names": list(self.feature_names),
            "metrics": self.metrics,
            "classes": list(self.classes) if self.classes else None,
            "dataset_md5": self.dataset_md5,
            "run_id": self.run_id,
            "hyperparams": self.hyperparams,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelInfo":
        """Build from a dictionary produced by :meth:`to_dict`."""
        classes = data.get("classes")
        return cls(
            model_id=data["model_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            training_samples=data["training_samples"],
            feature_names=tuple(data["feature_names"]),
            metrics=data["metrics"],
            version=int(data.get("version", 1)),
            model_name=data.get("model_name", "default"),
            task=data.get("task", "regression"),
            stage=ModelStage.parse(data.get("stage", ModelStage.NONE.value)),
            classes=tuple(classes) if classes else None,
            dataset_md5=data.get("dataset_md5"),
            run_id=data.get("run_id"),
            hyperparams=data.get("hyperparams"),
        )

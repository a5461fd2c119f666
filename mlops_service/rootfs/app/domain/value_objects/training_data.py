"""Training data value objects.

Immutable data structures for ML training inputs.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from .dataset_version import DatasetVersion

SUPPORTED_TASKS = ("regression", "classification")

_MODEL_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def is_finite_number(value: Any) -> bool:
    """Check that a value is a real, finite number (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_model_name(model_name: str) -> None:
    """Validate a registered model name.

    Raises:
        ValueError: If the name is empty, too long or has invalid characters
    """
    if not model_name:
        raise ValueError("model_name cannot be empty")
    if len(model_name) > 63:
        raise ValueError(f"model_name must be at most 63 characters, got {len(model_name)}")
    if not _MODEL_NAME_PATTERN.match(model_name):
        raise ValueError(
            f"model_name must contain only lowercase letters, digits, '-' and '_', "
            f"got {model_name!r}"
        )


@dataclass(frozen=True)
class TrainingDataPoint:
    """A single labelled sample.

    Attributes:
        features: Mapping of feature name to numeric value
        target: Label - a number for regression, a class label for classification
        timestamp: When this sample was recorded (optional)
    """

    features: dict[str, float]
    target: float | str
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        """Validate data point values."""
        if not self.features:
            raise ValueError("features cannot be empty")
        for name, value in self.features.items():
            if not name:
                raise ValueError("feature names cannot be empty")
            if not is_finite_number(value):
                raise ValueError(f"feature {name!r} must be a finite number, got {value!r}")
        if isinstance(self.target, str):
            if not self.target:
                raise ValueError("target label cannot be empty")
        elif not is_finite_number(self.target):
            raise ValueError(f"target must be a finite number or a label, got {self.target!r}")


@dataclass(frozen=True)
class TrainingData:
    """Collection of training data points for model training.

    Attributes:
        data_points: Sequence of training data points
        dataset_version: Version of the dataset the points were loaded from
    """

    data_points: tuple[TrainingDataPoint, ...]
    dataset_version: DatasetVersion | None = None

    def __post_init__(self) -> None:
        """Validate training data."""
        if not self.data_points:
            raise ValueError("Training data must contain at least one data point")

    @classmethod
    def from_sequence(
        cls,
        data_points: Sequence[TrainingDataPoint],
        dataset_version: DatasetVersion | None = None,
    ) -> "TrainingData":
        """Create TrainingData from a sequence of data points."""
        return cls(data_points=tuple(data_points), dataset_version=dataset_version)

    @property
    def size(self) -> int:
        """Return the number of data points."""
        return len(self.data_points)

    @property
    def feature_names(self) -> tuple[str, ...]:
        """Return the sorted union of feature names across all points."""
        names: set[str] = set()
        for dp in self.data_points:
            names.update(dp.features)
        return tuple(sorted(names))


@dataclass(frozen=True)
class TrainingConfig:
    """Configuration of a single training run.

    Attributes:
        model_name: Registered model name the new version belongs to
        task: "regression" or "classification"
        hyperparams: XGBoost hyperparameter overrides
        test_size: Fraction of samples held out for validation
        min_samples: Minimum number of samples required to train
        random_state: Seed for the split and the booster
    """

    model_name: str = "default"
    task: str = "regression"
    hyperparams: dict[str, Any] | None = field(default=None, hash=False)
    test_size: float = 0.2
    min_samples: int = 10
    random_state: int = 42

    def __post_init__(self) -> None:
        """Validate training configuration."""
        validate_model_name(self.model_name)
        if self.task not in SUPPORTED_TASKS:
            raise ValueError(
                f"task must be one of {', '.join(SUPPORTED_TASKS)}, got {self.task!r}"
            )
        if not 0.0 < self.test_size < 1.0:
            raise ValueError(f"test_size must be between 0 and 1, got {self.test_size}")
        if self.min_samples < 2:
            raise ValueError(f"min_samples must be at least 2, got {self.min_samples}")

    @property
    def primary_metric(self) -> str:
        """Metric used to compare models of this task."""
        return "rmse" if self.task == "regression" else "accuracy"

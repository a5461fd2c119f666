"""Prediction request value object.

Immutable data structure for ML prediction inputs.
"""

from dataclasses import dataclass

from .training_data import is_finite_number


@dataclass(frozen=True)
class PredictionRequest:
    """Request for a single model prediction.

    Attributes:
        features: Either a mapping of feature name to value, or a list of
            values ordered like the model's feature contract
        model_id: Optional model identifier (overrides model_name)
        model_name: Optional registered model name; its serving model is used
    """

    features: dict[str, float] | list[float]
    model_id: str | None = None
    model_name: str | None = None

    def __post_init__(self) -> None:
        """Validate prediction request values."""
        if isinstance(self.features, dict):
            if not self.features:
                raise ValueError("features cannot be empty")
            for name, value in self.features.items():
                if not is_finite_number(value):
                    raise ValueError(f"feature {name!r} must be a finite number, got {value!r}")
        elif isinstance(self.features, (list, tuple)):
            if not self.features:
                raise ValueError("features cannot be empty")
            for index, value in enumerate(self.features):
                if not is_finite_number(value):
                    raise ValueError(
                        f"feature at position {index} must be a finite number, got {value!r}"
                    )
        else:
            raise ValueError(
                f"features must be an object or an array, got {type(self.features).__name__}"
            )

    @property
    def is_positional(self) -> bool:
        """True when features are given as an ordered list."""
        return not isinstance(self.features, dict)

"""Prediction result value object.

Immutable data structure for ML prediction outputs.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PredictionResult:
    """Result of a model prediction.

    Attributes:
        prediction: Predicted value (regression) or class label (classification)
        model_id: Identifier of the model used for prediction
        model_version: Registry version of that model
        timestamp: When the prediction was made
        probabilities: Class probabilities keyed by label (classification only)
        feature_mismatch: True if contract features were missing from the request
        missing_features: Contract features absent from the request (if any)
        unknown_features: Request features the model does not know (if any)
    """

    prediction: float | str
    model_id: str
    model_version: int
    timestamp: datetime
    probabilities: dict[str, float] | None = None
    feature_mismatch: bool = False
    missing_features: list[str] | None = None
    unknown_features: list[str] | None = None

    def __post_init__(self) -> None:
        """Validate prediction result values."""
        if not self.model_id:
            raise ValueError("model_id cannot be empty")
        if self.probabilities is not None:
            for label, probability in self.probabilities.items():
                if not 0.0 <= probability <= 1.0:
                    raise ValueError(
                        f"probability for {label!r} must be between 0.0 and 1.0, got {probability}"
                    )

    def to_dict(self) -> dict:
        """Serialize to the JSON response shape of the prediction endpoint."""
        payload = {
            "prediction": self.prediction,
            "model_id": self.model_id,
            "model_version": self.model_version,
            "timestamp": self.timestamp.isoformat(),
            "feature_mismatch": self.feature_mismatch,
        }
        if self.probabilities is not None:
            payload["probabilities"] = self.probabilities
        if self.missing_features:
            payload["missing_features"] = self.missing_features
        if self.unknown_features:
            payload["unknown_features"] = self.unknown_features
        return payload

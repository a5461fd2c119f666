"""Pipeline result value object."""

from dataclasses import dataclass

from .dataset_version import DatasetVersion
from .model_info import ModelInfo
from .promotion_decision import PromotionDecision


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a full version-train-evaluate-promote pipeline run.

    Attributes:
        dataset_version: Dataset snapshot the model was trained on
        model_info: Trained model (with its final stage)
        decision: Promotion gate decision
        promoted: True if the model was moved to Production
    """

    dataset_version: DatasetVersion
    model_info: ModelInfo
    decision: PromotionDecision
    promoted: bool

    def to_dict(self) -> dict:
        return {
            "dataset": {
                "path": self.dataset_version.path,
                "md5": self.dataset_version.md5,
                "size": self.dataset_version.size,
            },
            "model": self.model_info.to_dict(),
            "decision": self.decision.to_dict(),
            "promoted": self.promoted,
        }

"""Value objects for ML domain.

Value objects are immutable data carriers that represent domain concepts.
They have no identity and are compared by their attributes.
"""

from .dataset_version import DatasetStatus, DatasetVersion
from .deployment_config import DeploymentConfig
from .model_info import ModelInfo, ModelStage
from .pipeline_result import PipelineResult
from .prediction_request import PredictionRequest
from .prediction_result import PredictionResult
from .promotion_decision import PromotionDecision
from .training_data import (
    SUPPORTED_TASKS,
    TrainingConfig,
    TrainingData,
    TrainingDataPoint,
    is_finite_number,
    validate_model_name,
)

__all__ = [
    "DatasetStatus",
    "DatasetVersion",
    "DeploymentConfig",
    "ModelInfo",
    "ModelStage",
    "PipelineResult",
    "PredictionRequest",
    "PredictionResult",
    "PromotionDecision",
    "SUPPORTED_TASKS",
    "TrainingConfig",
    "TrainingData",
    "TrainingDataPoint",
    "is_finite_number",
    "validate_model_name",
]

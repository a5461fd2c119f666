"""Domain services for ML operations.

Services contain pure business logic and operate on value objects.
"""

from .prediction_service import PredictionService
from .promotion_gate import PromotionGate
from .synthetic_data_generator import SyntheticDataGenerator

__all__ = [
    "PredictionService",
    "PromotionGate",
    "SyntheticDataGenerator",
]

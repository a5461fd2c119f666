"""Domain interfaces for ML operations.

Interfaces define contracts between the domain and infrastructure layers.
The domain depends on these abstractions, not on concrete implementations.
"""

from .dataset_loader import IDatasetLoader
from .dataset_registry import IDatasetRegistry
from .experiment_tracker import IExperimentTracker
from .ml_model_predictor import IMLModelPredictor
from .ml_model_trainer import IMLModelTrainer
from .model_storage import IModelStorage

__all__ = [
    "IDatasetLoader",
    "IDatasetRegistry",
    "IExperimentTracker",
    "IMLModelPredictor",
    "IMLModelTrainer",
    "IModelStorage",
]

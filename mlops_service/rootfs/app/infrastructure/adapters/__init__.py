"""Infrastructure adapters for ML operations.

These adapters implement domain interfaces using external libraries
like XGBoost, MLflow, pandas and file system storage.
"""

from .csv_dataset_loader import CsvDatasetLoader
from .experiment_tracking import MLflowExperimentTracker, NullExperimentTracker, TrackingError
from .file_dataset_registry import DatasetError, DatasetNotFoundError, FileDatasetRegistry
from .file_model_storage import FileModelStorage, ModelNotFoundError, StorageError
from .prediction_client import PredictionClient
from .xgboost_predictor import XGBoostPredictor
from .xgboost_trainer import XGBoostTrainer

__all__ = [
    "CsvDatasetLoader",
    "DatasetError",
    "DatasetNotFoundError",
    "FileDatasetRegistry",
    "FileModelStorage",
    "MLflowExperimentTracker",
    "ModelNotFoundError",
    "NullExperimentTracker",
    "PredictionClient",
    "StorageError",
    "TrackingError",
    "XGBoostPredictor",
    "XGBoostTrainer",
]

"""Service composition.

Builds the application service with its infrastructure adapters from
ServiceSettings. Used by the HTTP server and the CLI.
"""

import logging

from application.services import MLApplicationService
from domain.interfaces import IExperimentTracker
from domain.services import PromotionGate
from infrastructure.adapters import (
    CsvDatasetLoader,
    FileDatasetRegistry,
    FileModelStorage,
    MLflowExperimentTracker,
    NullExperimentTracker,
    XGBoostPredictor,
    XGBoostTrainer,
)
from infrastructure.config import ServiceSettings

_LOGGER = logging.getLogger(__name__)


def build_tracker(settings: ServiceSettings) -> IExperimentTracker:
    """Pick the experiment tracker for the configured tracking URI."""
    if settings.mlflow_tracking_uri:
        return MLflowExperimentTracker(
            tracking_uri=settings.mlflow_tracking_uri,
            experiment_name=settings.mlflow_experiment_name,
        )
    _LOGGER.info("MLFLOW_TRACKING_URI not set, experiment tracking disabled")
    return NullExperimentTracker()


def build_ml_service(
    settings: ServiceSettings,
    tracker: IExperimentTracker | None = None,
) -> MLApplicationService:
    """Compose the ML application service.

    Args:
        settings: Service settings
        tracker: Experiment tracker override (chosen from settings when omitted)

    Returns:
        Ready to use application service
    """
    storage = FileModelStorage(settings.model_path)
    trainer = XGBoostTrainer(storage, tracker or build_tracker(settings))
    predictor = XGBoostPredictor(storage)

    return MLApplicationService(
        trainer,
        predictor,
        storage,
        dataset_registry=FileDatasetRegistry(
            settings.data_workspace, settings.data_cache_path
        ),
        dataset_loader=CsvDatasetLoader(),
        promotion_gate=PromotionGate(min_improvement=settings.promotion_min_improvement),
    )

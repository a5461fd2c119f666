"""Experiment tracking adapters.

Infrastructure adapters that implement IExperimentTracker, either against
an MLflow tracking server or as a no-op for deployments without one.
"""

import logging
import uuid
from typing import Any

import mlflow
from domain.interfaces import IExperimentTracker
from domain.value_objects import is_finite_number

_LOGGER = logging.getLogger(__name__)

# MLflow rejects parameter values longer than this
MAX_PARAM_VALUE_LENGTH = 500


class TrackingError(Exception):
    """Raised when the tracking backend is used incorrectly."""

    pass


class NullExperimentTracker(IExperimentTracker):
    """Tracker that only logs what it would have recorded."""

    def __init__(self) -> None:
        self._active_run_id: str | None = None

    @property
    def active_run_id(self) -> str | None:
        return self._active_run_id

    def start_run(self, run_name: str, tags: dict[str, str] | None = None) -> str:
        self._active_run_id = f"local-{uuid.uuid4().hex[:12]}"
        _LOGGER.debug("Started local run %s (%s) tags=%s", self._active_run_id, run_name, tags)
        return self._active_run_id

    def log_params(self, params: dict[str, Any]) -> None:
        _LOGGER.debug("Run %s params: %s", self._active_run_id, params)

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        _LOGGER.debug("Run %s metrics: %s", self._active_run_id, metrics)

    def log_model(self, model: Any, artifact_path: str = "model") -> None:
        _LOGGER.debug("Run %s model artifact: %s", self._active_run_id, artifact_path)

    def end_run(self, status: str = "FINISHED") -> None:
        _LOGGER.debug("Run %s ended: %s", self._active_run_id, status)
        self._active_run_id = None


class MLflowExperimentTracker(IExperimentTracker):
    """MLflow implementation of the experiment tracker.

    Each training run becomes an MLflow run inside the configured
    experiment; the trained booster is logged with the XGBoost flavor.
    """

    def __init__(self, tracking_uri: str, experiment_name: str) -> None:
        """Initialize the MLflow tracker.

        Args:
            tracking_uri: MLflow tracking URI (server URL or local store)
            experiment_name: Experiment the runs are grouped under
        """
        if not tracking_uri:
            raise ValueError("tracking_uri cannot be empty")
        if not experiment_name:
            raise ValueError("experiment_name cannot be empty")

        self._tracking_uri = tracking_uri
        self._experiment_name = experiment_name
        self._active_run_id: str | None = None

        mlflow.set_tracking_uri(tracking_uri)
        mlflow.set_experiment(experiment_name)
        _LOGGER.info(
            "MLflow tracking enabled: %s (experiment: %s)",
            tracking_uri,
            experiment_name,
        )

    @property
    def active_run_id(self) -> str | None:
        return self._active_run_id

    def start_run(self, run_name: str, tags: dict[str, str] | None = None) -> str:
        if self._active_run_id is not None:
            raise TrackingError(f"Run {self._active_run_id} is still active")
        run = mlflow.start_run(run_name=run_name, tags=tags or {})
        self._active_run_id = run.info.run_id
        _LOGGER.info("Started MLflow run %s (%s)", self._active_run_id, run_name)
        return self._active_run_id

    def log_params(self, params: dict[str, Any]) -> None:
        self._require_active_run()
        mlflow.log_params(
            {key: str(value)[:MAX_PARAM_VALUE_LENGTH] for key, value in params.items()}
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self._require_active_run()
        numeric = {key: float(value) for key, value in metrics.items() if is_finite_number(value)}
        skipped = sorted(set(metrics) - set(numeric))
        if skipped:
            _LOGGER.debug("Skipping non-numeric metrics: %s", ", ".join(skipped))
        mlflow.log_metrics(numeric)

    def log_model(self, model: Any, artifact_path: str = "model") -> None:
        self._require_active_run()
        mlflow.xgboost.log_model(model, artifact_path)

    def end_run(self, status: str = "FINISHED") -> None:
        if self._active_run_id is None:
            return
        mlflow.end_run(status=status)
        _LOGGER.info("MLflow run %s ended: %s", self._active_run_id, status)
        self._active_run_id = None

    def _require_active_run(self) -> None:
        if self._active_run_id is None:
            raise TrackingError("No active run; call start_run() first")

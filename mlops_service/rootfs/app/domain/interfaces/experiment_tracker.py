"""Experiment tracker interface.

Contract for recording training runs (parameters, metrics, artifacts)
in an experiment tracking backend.
"""

from abc import ABC, abstractmethod
from typing import Any


class IExperimentTracker(ABC):
    """Contract for experiment tracking operations.

    A tracker holds at most one active run at a time.
    """

    @abstractmethod
    def start_run(self, run_name: str, tags: dict[str, str] | None = None) -> str:
        """Start a new run.

        Args:
            run_name: Human-readable run name
            tags: Run tags

        Returns:
            The backend's run identifier
        """
        pass

    @abstractmethod
    def log_params(self, params: dict[str, Any]) -> None:
        """Record run parameters."""
        pass

    @abstractmethod
    def log_metrics(self, metrics: dict[str, Any]) -> None:
        """Record run metrics. Non-numeric values are ignored."""
        pass

    @abstractmethod
    def log_model(self, model: Any, artifact_path: str = "model") -> None:
        """Record the trained model as a run artifact."""
        pass

    @abstractmethod
    def end_run(self, status: str = "FINISHED") -> None:
        """Terminate the active run with FINISHED or FAILED."""
        pass

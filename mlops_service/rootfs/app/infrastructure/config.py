"""Service settings.

Settings are read from environment variables, the way the container
image is configured at deploy time.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "info") -> None:
    """Configure root logging for the service and CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class ServiceSettings:
    """Runtime settings of the MLOps service.

    Attributes:
        model_path: Model storage directory
        data_workspace: Directory dataset paths are resolved against
        data_cache_path: Content-addressed dataset cache directory
        mlflow_tracking_uri: MLflow tracking URI (tracking disabled when None)
        mlflow_experiment_name: MLflow experiment name
        api_host: Bind address of the HTTP API
        api_port: Port of the HTTP API
        log_level: Logging level name
        default_model_name: Model name used when a request names none
        promotion_min_improvement: Required primary-metric improvement
            for automatic promotion
    """

    model_path: Path = Path("/data/models")
    data_workspace: Path = Path(".")
    data_cache_path: Path = Path("/data/cache")
    mlflow_tracking_uri: str | None = None
    mlflow_experiment_name: str = "mlops-service"
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    log_level: str = "info"
    default_model_name: str = "default"
    promotion_min_improvement: float = 0.0

    def __post_init__(self) -> None:
        """Validate settings."""
        if not 1 <= self.api_port <= 65535:
            raise ValueError(f"API_PORT must be between 1 and 65535, got {self.api_port}")
        if self.promotion_min_improvement < 0:
            raise ValueError(
                f"PROMOTION_MIN_IMPROVEMENT must be non-negative, "
                f"got {self.promotion_min_improvement}"
            )

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Build settings from environment variables."""
        return cls(
            model_path=Path(os.getenv("MODEL_PERSISTENCE_PATH", "/data/models")),
            data_workspace=Path(os.getenv("DATA_WORKSPACE_PATH", ".")),
            data_cache_path=Path(os.getenv("DATA_CACHE_PATH", "/data/cache")),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI") or None,
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "mlops-service"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=_int_env("API_PORT", 5000),
            log_level=os.getenv("LOG_LEVEL", "info"),
            default_model_name=os.getenv("DEFAULT_MODEL_NAME", "default"),
            promotion_min_improvement=_float_env("PROMOTION_MIN_IMPROVEMENT", 0.0),
        )

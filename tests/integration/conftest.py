"""Pytest fixtures for integration tests.

This module provides fixtures for testing the Flask API and the
application service against real adapters in temporary directories.
"""

import tempfile
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import patch

import pytest
from application.services import MLApplicationService
from domain.services import PromotionGate, SyntheticDataGenerator
from infrastructure.adapters import (
    CsvDatasetLoader,
    FileDatasetRegistry,
    FileModelStorage,
    XGBoostPredictor,
    XGBoostTrainer,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_model_dir(temp_dir: Path) -> Path:
    """Directory for model storage."""
    return temp_dir / "models"


@pytest.fixture
def ml_service(temp_dir: Path, temp_model_dir: Path) -> MLApplicationService:
    """Create an MLApplicationService with real file-based adapters."""
    storage = FileModelStorage(temp_model_dir)
    trainer = XGBoostTrainer(storage)
    predictor = XGBoostPredictor(storage)

    return MLApplicationService(
        trainer=trainer,
        predictor=predictor,
        storage=storage,
        dataset_registry=FileDatasetRegistry(temp_dir, temp_dir / ".cache"),
        dataset_loader=CsvDatasetLoader(),
        promotion_gate=PromotionGate(),
    )


@pytest.fixture
def flask_app(ml_service: MLApplicationService, temp_dir: Path, temp_model_dir: Path) -> Any:
    """Create a Flask test app with mocked services.

    This fixture patches the global ml_service in the server module.
    """
    # Patch the storage environment variables before importing server
    with patch.dict('os.environ', {
        'MODEL_PERSISTENCE_PATH': str(temp_model_dir),
        'DATA_CACHE_PATH': str(temp_dir / ".cache"),
        'DATA_WORKSPACE_PATH': str(temp_dir),
        'MLFLOW_TRACKING_URI': '',
    }):
        import infrastructure.api.server as server_module

        # Patch the global ml_service
        with patch.object(server_module, 'ml_service', ml_service):
            app = server_module.app
            app.config['TESTING'] = True
            yield app


@pytest.fixture
def client(flask_app: Any) -> Any:
    """Create a Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def sample_training_data() -> Dict[str, Any]:
    """Training request body with a linear target."""
    data = SyntheticDataGenerator(seed=21).generate(num_samples=60, num_features=3)
    return {
        "model_name": "house-prices",
        "data_points": [
            {
                "features": point.features,
                "target": point.target,
                "timestamp": point.timestamp.isoformat(),
            }
            for point in data.data_points
        ],
    }


@pytest.fixture
def sample_prediction_request() -> Dict[str, Any]:
    """Prediction request body matching sample_training_data."""
    return {
        "features": {"feature_0": 1.5, "feature_1": -3.0, "feature_2": 7.25},
    }


def _write_csv_dataset(path: Path, num_samples: int = 80, seed: int = 9, task: str = "regression") -> None:
    data = SyntheticDataGenerator(seed=seed).generate(num_samples=num_samples, num_features=3, task=task)
    lines = ["feature_0,feature_1,feature_2,target"]
    for point in data.data_points:
        values = [point.features[f"feature_{i}"] for i in range(3)]
        lines.append(",".join(str(v) for v in [*values, point.target]))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")


@pytest.fixture
def write_csv_dataset() -> Any:
    """Helper writing a synthetic dataset as CSV with a "target" column."""
    return _write_csv_dataset

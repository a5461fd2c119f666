"""Integration tests for all API endpoints.

This module tests the Flask API endpoints against real adapters and
validates the full request/response cycle.
"""

import json
from typing import Any, Dict

import pytest
from infrastructure.monitoring import REGISTRY


def _train(client: Any, body: Dict[str, Any]) -> Dict[str, Any]:
    response = client.post("/api/v1/train", json=body)
    assert response.status_code == 200, response.data
    return json.loads(response.data)


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_check_returns_healthy(self, client: Any) -> None:
        """Health endpoint should return healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "healthy"
        assert "timestamp" in data


class TestStatusEndpoint:
    """Tests for the /api/v1/status endpoint."""

    def test_status_without_models(self, client: Any) -> None:
        """Status endpoint should report an empty registry."""
        response = client.get("/api/v1/status")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["ready"] is False
        assert data["model_count"] == 0
        assert data["production_models"] == []
        assert "serving_model" not in data

    def test_status_with_model(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        """Status endpoint should describe the serving model."""
        trained = _train(client, sample_training_data)

        data = json.loads(client.get("/api/v1/status").data)

        assert data["ready"] is True
        assert data["model_count"] == 1
        assert data["serving_model"]["id"] == trained["model_id"]
        assert data["serving_model"]["name"] == "house-prices"


class TestTrainEndpoint:
    """Tests for the /api/v1/train endpoint."""

    def test_train_with_valid_data(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        """Training with valid data should succeed."""
        data = _train(client, sample_training_data)

        assert data["success"] is True
        assert data["model_name"] == "house-prices"
        assert data["version"] == 1
        assert data["stage"] == "None"
        assert data["training_samples"] == 60
        assert data["feature_names"] == ["feature_0", "feature_1", "feature_2"]
        assert "rmse" in data["metrics"]

    def test_train_uses_default_model_name(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        """Training without model_name should use the configured default."""
        body = dict(sample_training_data)
        del body["model_name"]

        data = _train(client, body)

        assert data["model_name"] == "default"

    def test_train_classification(self, client: Any) -> None:
        """Classification requests should produce label classes."""
        body = {
            "task": "classification",
            "model_name": "spam",
            "data_points": [
                {"features": {"x": float(i)}, "target": "spam" if i % 2 else "ham"}
                for i in range(40)
            ],
        }

        data = _train(client, body)

        assert data["task"] == "classification"
        assert data["classes"] == ["ham", "spam"]
        assert "accuracy" in data["metrics"]

    def test_train_with_hyperparams(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        body = dict(sample_training_data, hyperparams={"max_depth": 3, "n_estimators": 20})

        data = _train(client, body)

        assert data["hyperparams"]["max_depth"] == 3
        assert data["hyperparams"]["n_estimators"] == 20

    def test_train_without_body(self, client: Any) -> None:
        response = client.post("/api/v1/train", data="", content_type="application/json")

        assert response.status_code == 400
        assert "No data provided" in json.loads(response.data)["error"]

    def test_train_without_data_points(self, client: Any) -> None:
        response = client.post("/api/v1/train", json={"model_name": "x", "data_points": []})

        assert response.status_code == 400
        assert "No data points" in json.loads(response.data)["error"]

    def test_train_missing_target(self, client: Any) -> None:
        response = client.post("/api/v1/train", json={"data_points": [{"features": {"x": 1.0}}]})

        assert response.status_code == 400
        assert "Missing required field" in json.loads(response.data)["error"]

    @pytest.mark.parametrize(
        "body",
        [
            {"task": "clustering", "data_points": [{"features": {"x": 1.0}, "target": 1.0}]},
            {"model_name": "Bad Name", "data_points": [{"features": {"x": 1.0}, "target": 1.0}]},
            {"hyperparams": [1, 2], "data_points": [{"features": {"x": 1.0}, "target": 1.0}]},
            {"data_points": [{"features": {"x": "warm"}, "target": 1.0}]},
        ],
    )
    def test_train_invalid_request(self, client: Any, body: Dict[str, Any]) -> None:
        response = client.post("/api/v1/train", json=body)

        assert response.status_code == 400
        assert "error" in json.loads(response.data)

    def test_train_too_few_samples(self, client: Any) -> None:
        body = {"data_points": [{"features": {"x": float(i)}, "target": float(i)} for i in range(5)]}

        response = client.post("/api/v1/train", json=body)

        assert response.status_code == 400
        assert "At least 10 samples" in json.loads(response.data)["error"]


class TestSyntheticTrainEndpoint:
    """Tests for the /api/v1/train/synthetic endpoint."""

    def test_train_with_synthetic_data(self, client: Any) -> None:
        response = client.post("/api/v1/train/synthetic", json={"num_samples": 50, "num_features": 2})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["training_samples"] == 50
        assert data["feature_names"] == ["feature_0", "feature_1"]

    def test_defaults_without_body(self, client: Any) -> None:
        response = client.post("/api/v1/train/synthetic")

        assert response.status_code == 200
        assert json.loads(response.data)["training_samples"] == 100

    def test_synthetic_classification(self, client: Any) -> None:
        response = client.post(
            "/api/v1/train/synthetic",
            json={"num_samples": 200, "task": "classification", "model_name": "synthetic-clf"},
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["classes"] == ["negative", "positive"]
        assert data["model_name"] == "synthetic-clf"

    @pytest.mark.parametrize(
        "num_samples, message",
        [(5, "at least 10"), (20000, "at most 10000"), ("many", "must be integers")],
    )
    def test_sample_bounds(self, client: Any, num_samples: Any, message: str) -> None:
        response = client.post("/api/v1/train/synthetic", json={"num_samples": num_samples})

        assert response.status_code == 400
        assert message in json.loads(response.data)["error"]


class TestPredictEndpoint:
    """Tests for the /predict and /api/v1/predict endpoints."""

    def test_predict_without_model(self, client: Any, sample_prediction_request: Dict[str, Any]) -> None:
        """Prediction without a trained model should return 503."""
        response = client.post("/predict", json=sample_prediction_request)

        assert response.status_code == 503
        assert "No trained model" in json.loads(response.data)["error"]

    @pytest.mark.parametrize("path", ["/predict", "/api/v1/predict"])
    def test_predict_after_training(
        self,
        client: Any,
        path: str,
        sample_training_data: Dict[str, Any],
        sample_prediction_request: Dict[str, Any],
    ) -> None:
        """Both prediction routes should answer with the serving model."""
        trained = _train(client, sample_training_data)

        response = client.post(path, json=sample_prediction_request)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert isinstance(data["prediction"], float)
        assert data["model_id"] == trained["model_id"]
        assert data["model_version"] == 1
        assert data["feature_mismatch"] is False
        assert "timestamp" in data

    def test_predict_positional_features(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        _train(client, sample_training_data)

        response = client.post("/predict", json={"features": [1.0, 2.0, 3.0]})

        assert response.status_code == 200

    def test_predict_wrong_positional_length(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        _train(client, sample_training_data)

        response = client.post("/predict", json={"features": [1.0]})

        assert response.status_code == 400
        assert "expects 3 features" in json.loads(response.data)["error"]

    def test_predict_reports_feature_mismatch(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        _train(client, sample_training_data)

        response = client.post("/predict", json={"features": {"feature_0": 1.0, "humidity": 40.0}})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["feature_mismatch"] is True
        assert data["missing_features"] == ["feature_1", "feature_2"]
        assert data["unknown_features"] == ["humidity"]

    def test_predict_classification_probabilities(self, client: Any) -> None:
        client.post(
            "/api/v1/train/synthetic",
            json={"num_samples": 200, "task": "classification", "model_name": "clf"},
        )

        response = client.post(
            "/predict",
            json={"features": {f"feature_{i}": 2.0 for i in range(4)}, "model_name": "clf"},
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["prediction"] in ("negative", "positive")
        assert set(data["probabilities"]) == {"negative", "positive"}

    def test_predict_unknown_model_id(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        _train(client, sample_training_data)

        response = client.post("/predict", json={"features": [1.0, 2.0, 3.0], "model_id": "missing"})

        assert response.status_code == 404

    @pytest.mark.parametrize("model_id", ["../models/models_index", "../../etc/passwd", "a.b"])
    def test_predict_rejects_path_like_model_id(
        self, client: Any, sample_training_data: Dict[str, Any], model_id: str
    ) -> None:
        _train(client, sample_training_data)

        response = client.post("/predict", json={"features": [1.0, 2.0, 3.0], "model_id": model_id})

        assert response.status_code == 404

    def test_predict_unknown_model_name(self, client: Any) -> None:
        response = client.post("/predict", json={"features": [1.0], "model_name": "nobody"})

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            {"model_name": "x"},
            {"features": {}},
            {"features": {"x": "high"}},
            {"features": 3},
        ],
    )
    def test_predict_invalid_request(self, client: Any, body: Dict[str, Any]) -> None:
        response = client.post("/predict", json=body)

        assert response.status_code == 400
        assert "error" in json.loads(response.data)

    def test_predict_without_body(self, client: Any) -> None:
        response = client.post("/predict", data="not json", content_type="text/plain")

        assert response.status_code == 400


class TestModelsEndpoints:
    """Tests for the model registry endpoints."""

    def test_list_models(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        _train(client, sample_training_data)
        client.post("/api/v1/train/synthetic", json={"num_samples": 20, "model_name": "other"})

        all_models = json.loads(client.get("/api/v1/models").data)["models"]
        filtered = json.loads(client.get("/api/v1/models?model_name=other").data)["models"]

        assert len(all_models) == 2
        assert [m["model_name"] for m in filtered] == ["other"]

    def test_get_model(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        trained = _train(client, sample_training_data)

        response = client.get(f"/api/v1/models/{trained['model_id']}")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["model_id"] == trained["model_id"]
        assert data["feature_names"] == ["feature_0", "feature_1", "feature_2"]

    def test_get_unknown_model(self, client: Any) -> None:
        response = client.get("/api/v1/models/missing")

        assert response.status_code == 404

    def test_transition_stage(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        """Promoting a version should make it the serving model."""
        first = _train(client, sample_training_data)
        second = _train(client, sample_training_data)

        response = client.post(
            f"/api/v1/models/{first['model_id']}/stage", json={"stage": "production"}
        )

        assert response.status_code == 200
        assert json.loads(response.data)["stage"] == "Production"

        prediction = json.loads(
            client.post("/predict", json={"features": [1.0, 2.0, 3.0]}).data
        )
        assert prediction["model_id"] == first["model_id"]
        assert second["version"] == 2

        status = json.loads(client.get("/api/v1/status").data)
        assert status["production_models"] == ["house-prices"]

    def test_transition_archives_previous_production(
        self, client: Any, sample_training_data: Dict[str, Any]
    ) -> None:
        first = _train(client, sample_training_data)
        second = _train(client, sample_training_data)
        client.post(f"/api/v1/models/{first['model_id']}/stage", json={"stage": "Production"})

        client.post(f"/api/v1/models/{second['model_id']}/stage", json={"stage": "Production"})

        first_now = json.loads(client.get(f"/api/v1/models/{first['model_id']}").data)
        assert first_now["stage"] == "Archived"

    def test_transition_invalid_stage(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        trained = _train(client, sample_training_data)

        response = client.post(f"/api/v1/models/{trained['model_id']}/stage", json={"stage": "live"})

        assert response.status_code == 400

    def test_transition_missing_stage(self, client: Any) -> None:
        response = client.post("/api/v1/models/m1/stage", json={})

        assert response.status_code == 400

    def test_transition_unknown_model(self, client: Any) -> None:
        response = client.post("/api/v1/models/missing/stage", json={"stage": "Staging"})

        assert response.status_code == 404

    def test_delete_model(self, client: Any, sample_training_data: Dict[str, Any]) -> None:
        trained = _train(client, sample_training_data)

        response = client.delete(f"/api/v1/models/{trained['model_id']}")

        assert response.status_code == 200
        assert json.loads(response.data)["deleted_model_id"] == trained["model_id"]
        assert client.get(f"/api/v1/models/{trained['model_id']}").status_code == 404
        assert client.post("/predict", json={"features": [1.0, 2.0, 3.0]}).status_code == 503

    def test_delete_unknown_model(self, client: Any) -> None:
        response = client.delete("/api/v1/models/missing")

        assert response.status_code == 404


class TestMetricsEndpoint:
    """Tests for the Prometheus /metrics endpoint."""

    def test_metrics_exposition(
        self,
        client: Any,
        sample_training_data: Dict[str, Any],
        sample_prediction_request: Dict[str, Any],
    ) -> None:
        _train(client, sample_training_data)
        client.post("/predict", json=sample_prediction_request)
        client.post("/predict", json={"features": {}})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.content_type.startswith("text/plain")
        body = response.data.decode()
        assert 'mlops_predictions_total{model_name="house-prices"}' in body
        assert 'mlops_prediction_errors_total{reason="bad_request"}' in body
        assert REGISTRY.get_sample_value(
            "mlops_training_runs_total", {"task": "regression", "status": "success"}
        ) >= 1
        assert 'endpoint="/predict"' in body
        assert "mlops_http_request_duration_seconds_bucket" in body
        assert "mlops_registered_models 1.0" in body

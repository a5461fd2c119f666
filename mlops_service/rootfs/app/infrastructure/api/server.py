"""Flask HTTP API Server.

HTTP API of the model serving container.
Provides endpoints for prediction, training, the model registry
and Prometheus metrics.
"""

import asyncio
import logging
import sys
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable

from flask import Flask, Response, g, jsonify, request

# Add app directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from domain.value_objects import (
    ModelStage,
    PredictionRequest,
    TrainingConfig,
    TrainingData,
    TrainingDataPoint,
)
from infrastructure.adapters import ModelNotFoundError
from infrastructure.bootstrap import build_ml_service
from infrastructure.config import ServiceSettings, configure_logging
from infrastructure.monitoring import (
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS,
    PREDICTION_ERRORS,
    PREDICTIONS,
    REGISTERED_MODELS,
    TRAINING_RUNS,
    render_metrics,
)

settings = ServiceSettings.from_env()
configure_logging(settings.log_level)
_LOGGER = logging.getLogger(__name__)

# Create Flask app
app = Flask(__name__)

# Initialize services
ml_service = build_ml_service(settings)


def async_route(f: Callable) -> Callable:
    """Decorator to run async functions in Flask routes.

    Uses asyncio.run() for proper event loop lifecycle management.
    """
    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))
    return wrapper


@app.before_request
def _start_timer() -> None:
    g.request_started = time.perf_counter()


@app.after_request
def _record_request(response: Response) -> Response:
    endpoint = request.url_rule.rule if request.url_rule else "unmatched"
    HTTP_REQUESTS.labels(request.method, endpoint, str(response.status_code)).inc()
    started = g.get("request_started")
    if started is not None:
        HTTP_REQUEST_DURATION.labels(endpoint).observe(time.perf_counter() - started)
    return response


def _training_config(data: dict) -> TrainingConfig:
    """Build a training configuration from a request body."""
    hyperparams = data.get("hyperparams")
    if hyperparams is not None and not isinstance(hyperparams, dict):
        raise ValueError("hyperparams must be an object")
    return TrainingConfig(
        model_name=data.get("model_name") or settings.default_model_name,
        task=data.get("task", "regression"),
        hyperparams=hyperparams,
    )


@app.route("/health", methods=["GET"])
def health_check() -> Response:
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
    })


@app.route("/metrics", methods=["GET"])
@async_route
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    try:
        REGISTERED_MODELS.set(len(await ml_service.list_models()))
    except Exception:
        _LOGGER.exception("Error counting registered models")
    payload, content_type = render_metrics()
    return Response(payload, mimetype=content_type)


@app.route("/api/v1/status", methods=["GET"])
@async_route
async def get_status() -> Response:
    """Get ML service status."""
    try:
        status = await ml_service.get_status()
        REGISTERED_MODELS.set(status["model_count"])
        return jsonify(status)
    except Exception as e:
        _LOGGER.exception("Error getting status")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/train", methods=["POST"])
@async_route
async def train_model() -> Response:
    """Train a model with provided data.

    Request body:
    {
        "model_name": str (optional - registered model name),
        "task": "regression" | "classification" (optional),
        "hyperparams": dict (optional - XGBoost overrides),
        "data_points": [
            {
                "features": {name: float, ...},
                "target": float | str,
                "timestamp": str (ISO format, optional)
            },
            ...
        ]
    }
    """
    task = "unknown"
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        data_points_raw = data.get("data_points", [])
        if not data_points_raw:
            return jsonify({"error": "No data points provided"}), 400

        config = _training_config(data)
        task = config.task

        # Parse data points
        data_points = []
        for dp in data_points_raw:
            timestamp = None
            if dp.get("timestamp"):
                try:
                    timestamp = datetime.fromisoformat(dp["timestamp"])
                except (TypeError, ValueError):
                    timestamp = None

            data_points.append(TrainingDataPoint(
                features=dict(dp["features"]),
                target=dp["target"],
                timestamp=timestamp,
            ))

        training_data = TrainingData.from_sequence(data_points)
        model_info = await ml_service.train_with_data(training_data, config)
        TRAINING_RUNS.labels(task, "success").inc()

        return jsonify({"success": True, **model_info.to_dict()})

    except KeyError as e:
        TRAINING_RUNS.labels(task, "rejected").inc()
        return jsonify({"error": f"Missing required field: {e}"}), 400
    except (TypeError, ValueError) as e:
        TRAINING_RUNS.labels(task, "rejected").inc()
        _LOGGER.warning("Invalid training data: %s", e)
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        TRAINING_RUNS.labels(task, "failed").inc()
        _LOGGER.exception("Error training model")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/train/synthetic", methods=["POST"])
@async_route
async def train_with_synthetic_data() -> Response:
    """Train a model with generated synthetic data.

    Request body (optional):
    {
        "num_samples": int (default: 100),
        "num_features": int (default: 4),
        "task": "regression" | "classification" (optional),
        "model_name": str (optional)
    }
    """
    task = "unknown"
    try:
        data = request.get_json(silent=True) or {}
        try:
            num_samples = int(data.get("num_samples", 100))
            num_features = int(data.get("num_features", 4))
        except (TypeError, ValueError):
            return jsonify({"error": "num_samples and num_features must be integers"}), 400

        if num_samples < 10:
            return jsonify({"error": "num_samples must be at least 10"}), 400
        if num_samples > 10000:
            return jsonify({"error": "num_samples must be at most 10000"}), 400

        config = _training_config(data)
        task = config.task
        model_info = await ml_service.train_with_synthetic_data(
            num_samples, num_features=num_features, config=config
        )
        TRAINING_RUNS.labels(task, "success").inc()

        return jsonify({"success": True, **model_info.to_dict()})

    except ValueError as e:
        TRAINING_RUNS.labels(task, "rejected").inc()
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        TRAINING_RUNS.labels(task, "failed").inc()
        _LOGGER.exception("Error training with synthetic data")
        return jsonify({"error": str(e)}), 500


@app.route("/predict", methods=["POST"])
@app.route("/api/v1/predict", methods=["POST"])
@async_route
async def predict() -> Response:
    """Make a prediction.

    Request body:
    {
        "features": {name: float, ...} | [float, ...],
        "model_id": str (optional - for specific model selection),
        "model_name": str (optional - serving model of this name)
    }
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            PREDICTION_ERRORS.labels("bad_request").inc()
            return jsonify({"error": "No data provided"}), 400

        prediction_request = PredictionRequest(
            features=data["features"],
            model_id=data.get("model_id"),
            model_name=data.get("model_name"),
        )

        # Check if model is available
        if not (prediction_request.model_id or prediction_request.model_name):
            if not await ml_service.is_ready():
                PREDICTION_ERRORS.labels("no_model").inc()
                return jsonify({
                    "error": "No trained model available. Train a model first.",
                }), 503

        result = await ml_service.predict(prediction_request)

        model_info = await ml_service.get_model_info(result.model_id)
        PREDICTIONS.labels(model_info.model_name if model_info else "unknown").inc()

        return jsonify(result.to_dict())

    except KeyError as e:
        PREDICTION_ERRORS.labels("bad_request").inc()
        return jsonify({"error": f"Missing required field: {e}"}), 400
    except ModelNotFoundError as e:
        PREDICTION_ERRORS.labels("model_not_found").inc()
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        PREDICTION_ERRORS.labels("bad_request").inc()
        _LOGGER.warning("Invalid prediction request: %s", e)
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        PREDICTION_ERRORS.labels("internal").inc()
        _LOGGER.exception("Error making prediction")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/models", methods=["GET"])
@async_route
async def list_models() -> Response:
    """List available models, optionally for one registered name."""
    try:
        model_name = request.args.get("model_name")
        models = await ml_service.list_models(model_name)
        return jsonify({"models": [m.to_dict() for m in models]})
    except Exception as e:
        _LOGGER.exception("Error listing models")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/models/<model_id>", methods=["GET"])
@async_route
async def get_model(model_id: str) -> Response:
    """Get information about a specific model."""
    try:
        model_info = await ml_service.get_model_info(model_id)
        if model_info is None:
            return jsonify({"error": "Model not found"}), 404
        return jsonify(model_info.to_dict())
    except Exception as e:
        _LOGGER.exception("Error getting model info")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/models/<model_id>/stage", methods=["POST"])
@async_route
async def transition_model_stage(model_id: str) -> Response:
    """Move a model to a registry stage.

    Request body:
    {
        "stage": "None" | "Staging" | "Production" | "Archived"
    }
    """
    try:
        data = request.get_json(silent=True)
        if not data or "stage" not in data:
            return jsonify({"error": "Missing required field: 'stage'"}), 400

        stage = ModelStage.parse(str(data["stage"]))
        model_info = await ml_service.promote_model(model_id, stage)
        return jsonify({"success": True, **model_info.to_dict()})
    except ModelNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        _LOGGER.exception("Error transitioning model stage")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/models/<model_id>", methods=["DELETE"])
@async_route
async def delete_model(model_id: str) -> Response:
    """Delete a model."""
    try:
        await ml_service.delete_model(model_id)
        return jsonify({"success": True, "deleted_model_id": model_id})
    except ModelNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        _LOGGER.exception("Error deleting model")
        return jsonify({"error": str(e)}), 500


def main() -> None:
    """Main entry point for the server."""
    _LOGGER.info("Starting MLOps prediction server on %s:%d", settings.api_host, settings.api_port)
    _LOGGER.info("Model storage path: %s", settings.model_path)

    app.run(host=settings.api_host, port=settings.api_port, debug=False)


if __name__ == "__main__":
    main()

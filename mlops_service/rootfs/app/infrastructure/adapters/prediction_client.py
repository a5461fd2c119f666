"""Prediction service HTTP client.

Thin client for a deployed prediction service, used for post-deployment
smoke tests.

Note: This client uses the synchronous requests library.
"""

import logging
from typing import Any
from urllib.parse import urljoin

import requests

_LOGGER = logging.getLogger(__name__)


class PredictionClient:
    """HTTP client for the prediction service API."""

    def __init__(self, base_url: str, timeout: int = 10) -> None:
        """Initialize the client.

        Args:
            base_url: Service base URL (e.g. http://mlops-service:5000)
            timeout: Request timeout in seconds
        """
        if not base_url:
            raise ValueError("base_url cannot be empty")
        # Trailing slash keeps urljoin from dropping a path prefix
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def health(self) -> bool:
        """Check whether the service reports itself healthy.

        Returns:
            True if /health answered 200 with status "healthy"
        """
        url = urljoin(self._base_url, "health")
        try:
            response = requests.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            _LOGGER.error("Health check against %s failed: %s", url, e)
            return False

        if response.status_code != 200:
            _LOGGER.warning("Health check against %s returned %d", url, response.status_code)
            return False
        body = _json_object(response)
        return body.get("status") == "healthy"

    def predict(
        self,
        features: dict[str, float] | list[float],
        model_id: str | None = None,
        model_name: str | None = None,
    ) -> dict[str, Any]:
        """Request a prediction.

        Args:
            features: Feature mapping or ordered feature list
            model_id: Specific model to use (optional)
            model_name: Registered model name to use (optional)

        Returns:
            Decoded JSON response with at least a "prediction" key

        Raises:
            ConnectionError: If the service cannot be reached or fails
            ValueError: If the service rejects the request
        """
        payload: dict[str, Any] = {"features": features}
        if model_id:
            payload["model_id"] = model_id
        if model_name:
            payload["model_name"] = model_name

        url = urljoin(self._base_url, "predict")
        try:
            response = requests.post(url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            _LOGGER.error("Prediction request to %s failed: %s", url, e)
            raise ConnectionError(f"Failed to reach prediction service: {e}") from e

        body = _json_object(response)

        if 400 <= response.status_code < 500:
            raise ValueError(body.get("error", f"Request rejected with {response.status_code}"))
        if response.status_code >= 500:
            raise ConnectionError(
                body.get("error", f"Prediction service error {response.status_code}")
            )
        if "prediction" not in body:
            raise ConnectionError("Prediction service returned no prediction")
        return body


def _json_object(response: requests.Response) -> dict[str, Any]:
    """Decoded JSON object of a response, empty when the body is anything else."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

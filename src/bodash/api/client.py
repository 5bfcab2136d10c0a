"""
bodash Optimization API Client

HTTP client for the remote Bayesian optimization service.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from bodash.api.exceptions import OptimizerAPIError, OptimizerConnectionError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"


@dataclass
class BestPoint:
    """Best point reported by the optimization API."""
    best_parameters: Optional[Dict[str, Any]] = None
    best_value: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.best_parameters is not None and self.best_value is not None


class OptimizerAPIClient:
    """
    Client for the remote optimization API.

    Example:
        with OptimizerAPIClient("http://localhost:8000/api/v1") as api:
            api.create_optimizer("user_run_1", config.api_payload())
            suggestions = api.suggest("user_run_1", batch_size=3)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        headers: Dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Optimization API URL including the version prefix
            timeout: Request timeout in seconds
            headers: Additional headers
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the client."""
        self._client.close()

    def _handle_response(self, response: httpx.Response) -> Any:
        """Raise OptimizerAPIError for error responses, else decode the body."""
        if response.is_error:
            try:
                body = response.json()
                detail = body.get("detail", body) if isinstance(body, dict) else body
            except ValueError:
                detail = response.text
            raise OptimizerAPIError(response.status_code, detail)

        if response.status_code == 204 or not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text

        return response.json()

    def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Dict[str, Any] | None = None,
    ) -> Any:
        """Make HTTP request."""
        logger.debug(f"{method} {self.base_url}{path}")
        try:
            response = self._client.request(
                method,
                path,
                json=json,
                params=params,
            )
        except httpx.TransportError as e:
            raise OptimizerConnectionError(
                f"Failed to connect to {self.base_url}: {e}"
            ) from e
        return self._handle_response(response)

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> Dict[str, Any]:
        """Check API health and GPU availability."""
        data = self._request("GET", "/health") or {}
        return {
            "status": data.get("status", "available"),
            "using_gpu": bool(data.get("using_gpu", False)),
            "gpu_info": data.get("gpu_info"),
        }

    # =========================================================================
    # Optimizers
    # =========================================================================

    def create_optimizer(self, optimizer_id: str, config: Dict[str, Any]) -> Any:
        """Create an optimizer from an assembled configuration payload."""
        logger.info(f"Creating optimizer {optimizer_id}")
        return self._request(
            "POST",
            "/optimizers",
            json={"optimizer_id": optimizer_id, **config},
        )

    def load_optimizer(self, optimizer_id: str) -> Any:
        """Load a persisted optimizer into memory on the API side."""
        return self._request("POST", f"/optimizers/{optimizer_id}/load")

    def suggest(self, optimizer_id: str, batch_size: int = 1) -> List[Dict[str, Any]]:
        """Get suggested parameter sets."""
        data = self._request(
            "GET",
            f"/optimizers/{optimizer_id}/suggest",
            params={"batch_size": batch_size},
        ) or {}
        return data.get("suggestions", [])

    def add_measurement(
        self,
        optimizer_id: str,
        parameters: Dict[str, Any],
        target_value: float | None = None,
        target_values: Dict[str, float] | None = None,
    ) -> Any:
        """
        Report one measurement.

        Pass target_value for single-objective optimizers and
        target_values for multi-objective ones.
        """
        if (target_value is None) == (target_values is None):
            raise ValueError("Provide exactly one of target_value or target_values")

        payload: Dict[str, Any] = {"parameters": parameters}
        if target_values is not None:
            payload["target_values"] = target_values
        else:
            payload["target_value"] = target_value

        return self._request(
            "POST",
            f"/optimizers/{optimizer_id}/measurements",
            json=payload,
        )

    def add_measurements(
        self,
        optimizer_id: str,
        measurements: List[Dict[str, Any]],
    ) -> Any:
        """Report several measurements in one call."""
        return self._request(
            "POST",
            f"/optimizers/{optimizer_id}/measurements/batch",
            json={"measurements": measurements},
        )

    def best_point(self, optimizer_id: str) -> BestPoint:
        """Get the best point so far; fields are None until one exists."""
        data = self._request("GET", f"/optimizers/{optimizer_id}/best_point") or {}
        if not data.get("best_parameters") or data.get("best_value") is None:
            return BestPoint()
        return BestPoint(
            best_parameters=data["best_parameters"],
            best_value=float(data["best_value"]),
        )

    # =========================================================================
    # Insights
    # =========================================================================

    def feature_importance(self, optimizer_id: str) -> Dict[str, Any]:
        """Get feature importance computed by the surrogate model."""
        return self._request("GET", f"/optimizers/{optimizer_id}/feature_importance")

    def predict(
        self,
        optimizer_id: str,
        points: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Predict target values at the given points."""
        return self._request(
            "POST",
            f"/optimizers/{optimizer_id}/predict",
            json={"points": points},
        )

    def export(self, optimizer_id: str, format: str = "json") -> Any:
        """Export the optimizer's campaign as JSON or CSV."""
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {format}")
        return self._request(
            "GET",
            f"/optimizers/{optimizer_id}/export",
            params={"format": format},
        )

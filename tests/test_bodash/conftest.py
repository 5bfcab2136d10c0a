"""
Shared fixtures: an in-process fake of the optimization API.
"""

import json
from typing import Any, Dict, List
from urllib.parse import parse_qs

import httpx
import pytest

from bodash.api.client import OptimizerAPIClient


API_URL = "http://optimizer.test/api/v1"


class FakeOptimizerAPI:
    """
    Minimal stand-in for the remote optimization API.

    Keeps optimizers and their measurements in memory and records every
    request it receives.
    """

    def __init__(self):
        self.optimizers: Dict[str, Dict[str, Any]] = {}
        self.measurements: Dict[str, List[Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self.using_gpu = False
        self.down = False
        self.fail_best_point = False
        self.reject_create = False

    # Helpers

    def _json(self, status_code: int, body: Any) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    def _not_found(self, optimizer_id: str) -> httpx.Response:
        return self._json(404, {"detail": f"Optimizer {optimizer_id} not found"})

    def _suggest(self, config: Dict[str, Any], n: int) -> List[Dict[str, Any]]:
        suggestions = []
        for i in range(n):
            point = {}
            for p in config["parameters"]:
                if p["type"] == "NumericalContinuous":
                    lo, hi = p["bounds"]
                    point[p["name"]] = lo + (hi - lo) * (i + 1) / (n + 1)
                else:
                    values = p.get("values") or ["default"]
                    point[p["name"]] = values[i % len(values)]
            suggestions.append(point)
        return suggestions

    def _best(self, optimizer_id: str) -> Dict[str, Any]:
        rows = self.measurements.get(optimizer_id, [])
        if not rows:
            return {"status": "success", "message": "No measurements yet"}

        def score(row):
            if "target_value" in row:
                return row["target_value"]
            return next(iter(row["target_values"].values()))

        best = max(rows, key=score)
        return {
            "status": "success",
            "best_parameters": best["parameters"],
            "best_value": score(best),
        }

    # Transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.down:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path.removeprefix("/api/v1")
        parts = [p for p in path.split("/") if p]
        query = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}
        body = json.loads(request.content) if request.content else None

        if parts == ["health"]:
            return self._json(200, {"status": "ok", "using_gpu": self.using_gpu})

        if parts == ["optimizers"] and request.method == "POST":
            if self.reject_create:
                return self._json(400, {"detail": "Invalid configuration"})
            optimizer_id = body.pop("optimizer_id")
            self.optimizers[optimizer_id] = body
            self.measurements[optimizer_id] = []
            return self._json(200, {"status": "success", "optimizer_id": optimizer_id})

        if len(parts) < 3 or parts[0] != "optimizers":
            return self._json(404, {"detail": "Not found"})

        optimizer_id, action = parts[1], "/".join(parts[2:])
        if optimizer_id not in self.optimizers:
            return self._not_found(optimizer_id)
        config = self.optimizers[optimizer_id]

        if action == "suggest":
            n = int(query.get("batch_size", 1))
            return self._json(200, {"status": "success", "suggestions": self._suggest(config, n)})

        if action == "measurements":
            self.measurements[optimizer_id].append(body)
            return self._json(200, {"status": "success"})

        if action == "measurements/batch":
            self.measurements[optimizer_id].extend(body["measurements"])
            return self._json(200, {"status": "success"})

        if action == "best_point":
            if self.fail_best_point:
                return self._json(500, {"detail": "Model not fitted"})
            return self._json(200, self._best(optimizer_id))

        if action == "load":
            return self._json(200, {"status": "success", "message": "Loaded"})

        if action == "feature_importance":
            names = [p["name"] for p in config["parameters"]]
            return self._json(200, {
                "feature_importance": {name: 1.0 / len(names) for name in names},
            })

        if action == "predict":
            return self._json(200, {
                "predictions": [{"mean": 0.5, "std": 0.1} for _ in body["points"]],
            })

        if action == "export":
            if query.get("format") == "csv":
                lines = ["x,y"] + [
                    f"{m['parameters']},{m.get('target_value')}"
                    for m in self.measurements[optimizer_id]
                ]
                return httpx.Response(
                    200,
                    text="\n".join(lines),
                    headers={"content-type": "text/csv"},
                )
            return self._json(200, {
                "optimizer_id": optimizer_id,
                "measurements": self.measurements[optimizer_id],
            })

        return self._json(404, {"detail": "Not found"})

    def client(self) -> OptimizerAPIClient:
        return OptimizerAPIClient(
            base_url=API_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_api() -> FakeOptimizerAPI:
    """Fake optimization API."""
    return FakeOptimizerAPI()


@pytest.fixture
def api_client(fake_api: FakeOptimizerAPI):
    """Optimization API client wired to the fake API."""
    with fake_api.client() as client:
        yield client


@pytest.fixture
def single_target_request() -> Dict[str, Any]:
    """Raw creation request with one MAX target."""
    return {
        "name": "Yield Study",
        "description": "Maximize reaction yield",
        "parameters": [
            {"name": "temperature", "type": "NumericalContinuous", "bounds": [20, 80]},
            {"name": "pressure", "type": "NumericalDiscrete", "values": [1, 2, 5]},
            {"name": "catalyst", "type": "CategoricalParameter", "values": ["A", "B", "C"]},
        ],
        "targets": [{"name": "yield", "mode": "MAX"}],
    }


@pytest.fixture
def multi_target_request() -> Dict[str, Any]:
    """Raw creation request with two targets combined by desirability."""
    return {
        "name": "Trade-off Study",
        "parameters": [
            {"name": "temperature", "type": "NumericalContinuous", "bounds": [20, 80]},
            {"name": "time", "type": "NumericalDiscrete", "values": [10, 20, 30]},
        ],
        "targets": [
            {"name": "yield", "mode": "MAX", "weight": 2.0},
            {"name": "cost", "mode": "MIN", "weight": 1.0},
        ],
        "objective_type": "desirability",
    }

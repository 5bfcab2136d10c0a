"""
Tests for measurement endpoints.
"""

import csv
import io
import json

from fastapi.testclient import TestClient


class TestCreateMeasurement:
    """Tests for POST /optimizations/{id}/measurements."""

    def test_single_value(self, client: TestClient, fake_api, optimization):
        response = client.post(
            f"/optimizations/{optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}, "target_value": 0.5},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["optimization_id"] == optimization["id"]
        assert data["target_value"] == 0.5
        assert data["target_values"] == {"yield": 0.5}
        assert data["is_recommended"] is True
        assert len(fake_api.measurements[optimization["optimizer_id"]]) == 1

    def test_target_values(self, client: TestClient, multi_optimization):
        response = client.post(
            f"/optimizations/{multi_optimization['id']}/measurements",
            json={
                "parameters": {"temperature": 30.0, "time": 10},
                "target_values": {"yield": 0.5, "cost": 3.0},
                "is_recommended": False,
            },
        )

        assert response.status_code == 201
        assert response.json()["target_values"] == {"yield": 0.5, "cost": 3.0}
        assert response.json()["is_recommended"] is False

    def test_missing_values(self, client: TestClient, optimization):
        response = client.post(
            f"/optimizations/{optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}},
        )
        assert response.status_code == 422

    def test_incomplete_multi_target(self, client: TestClient, multi_optimization):
        response = client.post(
            f"/optimizations/{multi_optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}, "target_values": {"yield": 0.5}},
        )

        assert response.status_code == 400
        assert "Missing values" in response.json()["detail"]

    def test_completed_optimization(self, client: TestClient, optimization):
        client.post(f"/optimizations/{optimization['id']}/complete")

        response = client.post(
            f"/optimizations/{optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}, "target_value": 0.5},
        )
        assert response.status_code == 400

    def test_api_failure_not_recorded(self, client: TestClient, fake_api, optimization):
        del fake_api.optimizers[optimization["optimizer_id"]]

        response = client.post(
            f"/optimizations/{optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}, "target_value": 0.5},
        )

        assert response.status_code == 502
        assert client.get(f"/optimizations/{optimization['id']}/measurements").json() == []

    def test_other_user(self, client: TestClient, optimization):
        response = client.post(
            f"/optimizations/{optimization['id']}/measurements",
            json={"parameters": {"temperature": 30.0}, "target_value": 0.5},
            headers={"X-User-Id": "bob"},
        )
        assert response.status_code == 403


class TestBatchMeasurements:
    """Tests for POST /optimizations/{id}/measurements/batch."""

    def test_batch(self, client: TestClient, fake_api, optimization):
        response = client.post(
            f"/optimizations/{optimization['id']}/measurements/batch",
            json={"measurements": [
                {"parameters": {"temperature": 30.0}, "target_value": 0.2},
                {"parameters": {"temperature": 60.0}, "target_values": {"yield": 0.7}},
            ]},
        )

        assert response.status_code == 201
        data = response.json()
        assert len(data) == 2
        assert all(m["is_recommended"] is False for m in data)
        assert len(fake_api.measurements[optimization["optimizer_id"]]) == 2

    def test_empty_batch(self, client: TestClient, optimization):
        response = client.post(
            f"/optimizations/{optimization['id']}/measurements/batch",
            json={"measurements": []},
        )
        assert response.status_code == 422


class TestListAndExport:
    """Tests for listing and exporting measurements."""

    def _seed(self, client, optimization):
        for temperature, value in [(30.0, 0.2), (60.0, 0.7)]:
            client.post(
                f"/optimizations/{optimization['id']}/measurements",
                json={
                    "parameters": {"temperature": temperature, "catalyst": "A"},
                    "target_value": value,
                },
            )

    def test_list_oldest_first(self, client: TestClient, optimization):
        self._seed(client, optimization)

        response = client.get(f"/optimizations/{optimization['id']}/measurements")

        assert response.status_code == 200
        assert [m["target_value"] for m in response.json()] == [0.2, 0.7]

    def test_export_csv(self, client: TestClient, optimization):
        self._seed(client, optimization)

        response = client.get(f"/optimizations/{optimization['id']}/measurements/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert optimization["optimizer_id"] in response.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [r["temperature"] for r in rows] == ["30.0", "60.0"]
        assert [r["yield"] for r in rows] == ["0.2", "0.7"]

    def test_export_json(self, client: TestClient, optimization):
        self._seed(client, optimization)

        response = client.get(
            f"/optimizations/{optimization['id']}/measurements/export",
            params={"format": "json"},
        )

        records = json.loads(response.text)
        assert [r["iteration"] for r in records] == [1, 2]

    def test_export_bad_format(self, client: TestClient, optimization):
        response = client.get(
            f"/optimizations/{optimization['id']}/measurements/export",
            params={"format": "xlsx"},
        )
        assert response.status_code == 422

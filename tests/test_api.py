"""
Unit tests for the FastAPI app.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from table_qa.main import app, finite


@pytest.fixture
def client(output_dir) -> TestClient:
    return TestClient(app)


class TestRoot:
    """Tests for GET / and GET /health."""

    def test_hint_without_report(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["report"] == "POST /api/report"

    def test_serves_report(self, client: TestClient, output_dir) -> None:
        (output_dir / "dashboard.html").write_text("<html>dashboard</html>")

        response = client.get("/")

        assert response.status_code == 200
        assert "dashboard" in response.text

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json()["status"] == "healthy"


class TestReport:
    """Tests for POST /api/report."""

    def test_no_history(self, client: TestClient) -> None:
        assert client.post("/api/report").status_code == 404

    def test_empty_history(self, client: TestClient, write_history) -> None:
        write_history([])

        assert client.post("/api/report").status_code == 404

    def test_corrupt_history(self, client: TestClient, output_dir) -> None:
        (output_dir / "execution-history.json").write_text("{broken")

        response = client.post("/api/report")

        assert response.status_code == 500
        assert "Cannot parse" in response.json()["detail"]

    def test_generates(self, client: TestClient, write_history, scenario_a, output_dir) -> None:
        write_history(scenario_a)

        response = client.post("/api/report")

        assert response.status_code == 200
        assert response.json()["records"] == 3
        assert response.json()["runs"] == 1
        assert (output_dir / "dashboard.html").exists()


class TestHistoryViews:
    """Tests for the JSON history endpoints."""

    def test_history_raw(self, client: TestClient, write_history, scenario_a) -> None:
        write_history(scenario_a)

        data = client.get("/api/history").json()

        assert [e["testId"] for e in data] == ["TC1", "TC2", "TC3"]

    def test_history_missing_is_empty(self, client: TestClient) -> None:
        assert client.get("/api/history").json() == []

    def test_runs(self, client: TestClient, write_history, scenario_a) -> None:
        write_history(scenario_a)

        runs = client.get("/api/runs").json()

        assert len(runs) == 1
        assert runs[0]["id"] == "RUN-1"
        assert runs[0]["wallClockTime"] == 2200
        assert runs[0]["total"] == 3
        assert "results" not in runs[0]

    def test_nan_wall_clock_is_null(self, client: TestClient, write_history, make_record) -> None:
        write_history([make_record(timestamp="garbage")])

        runs = client.get("/api/runs").json()

        assert runs[0]["wallClockTime"] is None

    def test_single_run(self, client: TestClient, write_history, scenario_a) -> None:
        write_history(scenario_a)

        run = client.get("/api/runs/RUN-1").json()

        assert len(run["results"]) == 3
        assert client.get("/api/runs/RUN-404").status_code == 404

    def test_metrics(self, client: TestClient, write_history, scenario_a) -> None:
        write_history(scenario_a)

        data = client.get("/api/metrics").json()

        assert data["globalStats"]["total"] == 3
        assert data["globalStats"]["passRate"] == 66.7
        assert data["browserStats"][0]["browser"] == "chromium"
        assert data["executionMetrics"]["sequential"]["totalRuns"] == 0
        assert data["speedupLabel"] == "-"
        assert "speedup" not in data or data["speedup"] is None

    def test_metrics_without_history(self, client: TestClient) -> None:
        assert client.get("/api/metrics").status_code == 404


class TestScreenshots:
    """Tests for GET /screenshots/{path}."""

    def test_serves_archived_file(self, client: TestClient, output_dir) -> None:
        shot = output_dir / "screenshots" / "RUN-1" / "step.png"
        shot.parent.mkdir(parents=True)
        shot.write_bytes(b"\x89PNG")

        response = client.get("/screenshots/RUN-1/step.png")

        assert response.status_code == 200
        assert response.content == b"\x89PNG"

    def test_missing_file(self, client: TestClient) -> None:
        assert client.get("/screenshots/RUN-1/none.png").status_code == 404

    def test_outside_archive_is_rejected(self, client: TestClient, output_dir) -> None:
        (output_dir / "execution-history.json").write_text("[]")

        response = client.get("/screenshots/..%2Fexecution-history.json")

        assert response.status_code == 404


class TestFinite:
    """Tests for the non-finite number filter."""

    def test_replaces_nested_non_finite(self) -> None:
        value = {"a": float("nan"), "b": [1.5, float("inf")], "c": "NaN"}

        assert finite(value) == {"a": None, "b": [1.5, None], "c": "NaN"}

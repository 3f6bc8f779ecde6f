"""
Tests for the proxy routes (generate, experiments, export).

Verifies that:
- Pagination, ids and bodies reach the backend unchanged
- Backend JSON and status codes are relayed verbatim
- Backend errors keep their status in a {success: false} envelope
- Transport and parse failures become the generic 500 envelope
- Export files are relayed byte-exact with their headers
- Malformed generation and export requests are rejected before the backend
"""

import json
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from main import app
from payloads import generation_body, make_experiment

client = TestClient(app)

INTERNAL_ERROR_BODY = {"success": False, "error": "Internal server error"}


# ============= GET /api/experiments =============


class TestListExperiments:
    """Listing is a pass-through with default pagination."""

    def test_forwards_pagination(self, backend):
        payload = {"success": True, "data": {"experiments": [make_experiment()], "total": 1}}
        backend.reply(200, json=payload)

        response = client.get("/api/experiments", params={"page": "3", "limit": "25"})

        assert response.status_code == 200
        assert response.json() == payload
        assert backend.last.method == "GET"
        assert backend.last.url.path == "/api/experiments"
        assert backend.last.url.params["page"] == "3"
        assert backend.last.url.params["limit"] == "25"

    def test_default_pagination(self, backend):
        backend.reply(200, json={"success": True, "data": {"experiments": []}})

        client.get("/api/experiments")

        assert backend.last.url.params["page"] == "1"
        assert backend.last.url.params["limit"] == "10"

    def test_uses_backend_url(self, backend, monkeypatch):
        monkeypatch.setenv("BACKEND_URL", "http://generator.internal:9000/")
        backend.reply(200, json={"success": True})

        client.get("/api/experiments")

        assert backend.last.url.host == "generator.internal"
        assert backend.last.url.port == 9000

    def test_backend_error_keeps_status(self, backend):
        backend.reply(503, json={"error": "Database unavailable"})

        response = client.get("/api/experiments")

        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "Database unavailable"}

    def test_backend_error_without_message(self, backend):
        backend.reply(404, json={"detail": "nope"})

        response = client.get("/api/experiments")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Backend error"}

    def test_unreachable_backend_returns_500(self, backend):
        backend.fail(httpx.ConnectError("Connection refused"))

        response = client.get("/api/experiments")

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY

    def test_malformed_backend_json_returns_500(self, backend):
        backend.reply(200, content=b"<html>not json</html>", headers={"content-type": "text/html"})

        response = client.get("/api/experiments")

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY

    def test_unreachable_real_address_returns_500(self, monkeypatch):
        """No patching: a closed local port must still yield the generic envelope."""
        monkeypatch.setenv("BACKEND_URL", "http://127.0.0.1:9")
        monkeypatch.setenv("BACKEND_TIMEOUT", "2")

        response = client.get("/api/experiments")

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY


# ============= DELETE /api/experiments =============


class TestDeleteExperiment:
    """Deletion requires an id and targets the backend's item route."""

    def test_missing_id_returns_400(self, backend):
        response = client.delete("/api/experiments")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing experiment ID"}
        assert backend.requests == []

    def test_empty_id_returns_400(self, backend):
        response = client.delete("/api/experiments", params={"id": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing experiment ID"

    def test_forwards_delete(self, backend):
        backend.reply(200, json={"success": True, "message": "Experiment deleted"})

        response = client.delete("/api/experiments", params={"id": "exp-42"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Experiment deleted"}
        assert backend.last.method == "DELETE"
        assert backend.last.url.path == "/api/experiments/exp-42"

    def test_path_form_is_equivalent(self, backend):
        backend.reply(200, json={"success": True})

        response = client.delete("/api/experiments/exp-42")

        assert response.status_code == 200
        assert backend.last.url.path == "/api/experiments/exp-42"

    def test_id_is_escaped(self, backend):
        backend.reply(200, json={"success": True})

        client.delete("/api/experiments", params={"id": "a/b"})

        assert backend.last.url.raw_path == b"/api/experiments/a%2Fb"

    def test_not_found_is_relayed(self, backend):
        backend.reply(404, json={"success": False, "error": "Experiment not found"})

        response = client.delete("/api/experiments", params={"id": "missing"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Experiment not found"}

    def test_transport_failure_returns_500(self, backend):
        backend.fail(httpx.ReadTimeout("timed out"))

        response = client.delete("/api/experiments", params={"id": "exp-1"})

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY


# ============= POST /api/generate =============


class TestGenerate:
    """Generation requests are validated, then forwarded as received."""

    def test_forwards_body_unchanged(self, backend):
        payload = {"success": True, "data": make_experiment()}
        backend.reply(200, json=payload)
        body = generation_body(experimentName="Autumn", extraField="kept")

        response = client.post("/api/generate", json=body)

        assert response.status_code == 200
        assert response.json() == payload
        assert backend.last.method == "POST"
        assert backend.last.url.path == "/api/generate"
        assert backend.last.headers["content-type"] == "application/json"
        assert json.loads(backend.last.content) == body

    def test_created_status_is_relayed(self, backend):
        backend.reply(201, json={"success": True, "data": make_experiment()})

        response = client.post("/api/generate", json=generation_body())

        assert response.status_code == 201

    def test_blank_prompt_rejected(self, backend):
        response = client.post("/api/generate", json=generation_body(prompt="   "))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Prompt must not be empty" in response.json()["error"]
        assert backend.requests == []

    def test_inverted_range_rejected(self, backend):
        body = generation_body()
        body["parameterRange"]["temperature"] = {"min": 0.9, "max": 0.2, "step": 0.1}

        response = client.post("/api/generate", json=body)

        assert response.status_code == 400
        assert "temperature: min (0.9) must not exceed max (0.2)" in response.json()["error"]
        assert backend.requests == []

    def test_zero_step_rejected(self, backend):
        body = generation_body()
        body["parameterRange"]["max_tokens"] = {"min": 100, "max": 500, "step": 0}

        response = client.post("/api/generate", json=body)

        assert response.status_code == 400
        assert "max_tokens: step must be positive" in response.json()["error"]

    @pytest.mark.parametrize("bounds", [
        {"min": "nan", "max": 1, "step": 0.1},
        {"min": 0.1, "max": "inf", "step": 0.1},
        {"min": 0.1, "max": 1, "step": "-inf"},
    ])
    def test_non_finite_range_rejected(self, backend, bounds):
        body = generation_body()
        body["parameterRange"]["temperature"] = bounds

        response = client.post("/api/generate", json=body)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "temperature" in response.json()["error"]
        assert backend.requests == []

    def test_unsupported_run_count_rejected(self, backend):
        response = client.post("/api/generate", json=generation_body(numberOfRuns=7))

        assert response.status_code == 400
        assert "numberOfRuns must be one of 3, 5, 10, 15, 20" in response.json()["error"]
        assert backend.requests == []

    def test_invalid_json_returns_500(self, backend):
        response = client.post(
            "/api/generate",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY
        assert backend.requests == []

    def test_backend_failure_relayed(self, backend):
        backend.reply(502, json={"success": False, "error": "Model quota exceeded"})

        response = client.post("/api/generate", json=generation_body())

        assert response.status_code == 502
        assert response.json() == {"success": False, "error": "Model quota exceeded"}


# ============= POST /api/export =============


class TestExport:
    """Exports are files: bytes and headers pass through untouched."""

    def test_csv_relayed_byte_exact(self, backend):
        csv_bytes = "id,overallScore\nr1,0.6\nr2,0.9\n".encode("utf-8")
        backend.reply(
            200,
            content=csv_bytes,
            headers={
                "content-type": "text/csv",
                "content-disposition": 'attachment; filename="experiment_exp-1.csv"',
            },
        )

        response = client.post(
            "/api/export",
            json={"experimentId": "exp-1", "format": "csv", "includeMetrics": True, "includeDetails": False},
        )

        assert response.status_code == 200
        assert response.content == csv_bytes
        assert response.headers["content-type"] == "text/csv"
        assert response.headers["content-disposition"] == 'attachment; filename="experiment_exp-1.csv"'
        assert backend.last.url.path == "/api/export"
        assert json.loads(backend.last.content)["format"] == "csv"

    def test_binary_pdf_relayed(self, backend):
        pdf_bytes = b"%PDF-1.7\n\x00\xff\xfe binary \x80\x81"
        backend.reply(200, content=pdf_bytes, headers={"content-type": "application/pdf"})

        response = client.post("/api/export", json={"experimentId": "exp-1", "format": "pdf"})

        assert response.content == pdf_bytes
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == "attachment"

    def test_json_export_round_trips(self, backend):
        experiment = make_experiment("exp-7")
        backend.reply(
            200,
            content=json.dumps(experiment).encode("utf-8"),
            headers={"content-type": "application/json"},
        )

        response = client.post("/api/export", json={"experimentId": "exp-7", "format": "json"})
        reimported = json.loads(response.content)

        assert reimported["id"] == experiment["id"]
        assert reimported["prompt"] == experiment["prompt"]
        assert len(reimported["responses"]) == len(experiment["responses"])
        assert reimported["totalRuns"] == experiment["totalRuns"]

    def test_missing_headers_get_defaults(self, backend):
        backend.reply(200, content=b"raw")

        response = client.post("/api/export", json={"experimentId": "exp-1", "format": "json"})

        assert response.content == b"raw"
        assert response.headers["content-type"] == "application/octet-stream"
        assert response.headers["content-disposition"] == "attachment"

    def test_backend_error_is_enveloped(self, backend):
        backend.reply(404, json={"error": "Experiment not found"})

        response = client.post("/api/export", json={"experimentId": "nope", "format": "json"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Experiment not found"}

    def test_unknown_format_rejected(self, backend):
        response = client.post("/api/export", json={"experimentId": "exp-1", "format": "xlsx"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert backend.requests == []

    def test_transport_failure_returns_500(self, backend):
        backend.fail(httpx.ConnectError("Connection refused"))

        response = client.post("/api/export", json={"experimentId": "exp-1", "format": "csv"})

        assert response.status_code == 500
        assert response.json() == INTERNAL_ERROR_BODY

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from backend.main import app

from conftest import StubGenerator


@pytest.fixture
def client():
    return TestClient(app)


def _stub(text):
    return patch("backend.gateway.MistralGenerator", return_value=StubGenerator(text))


class TestServiceEndpoints:
    def test_health_reports_key(self, client, api_key):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["has_api_key"] is True

    def test_health_without_key(self, client, no_api_key):
        assert client.get("/health").json()["has_api_key"] is False

    def test_ping(self, client):
        assert client.get("/ping").json() == {"pong": True}

    def test_sample_is_a_valid_payload(self, client):
        response = client.get("/sample")
        assert response.status_code == 200
        assert response.json()["sme_profile"]["business_id"] == "SME-10293"


class TestValidate:
    def test_valid_payload(self, client, sample_text):
        response = client.post("/validate", json={"payload": sample_text})

        assert response.status_code == 200
        assert response.json()["summary"]["transaction_count"] == 2

    def test_missing_field(self, client):
        response = client.post("/validate", json={"payload": '{"sme_profile": {}}'})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "missing_required_field"
        assert detail["field"] == "recent_transactions"


class TestAnalyze:
    def test_success(self, client, api_key, sample_text, analysis_text):
        with _stub(analysis_text):
            response = client.post("/analyze", json={"payload": sample_text})

        assert response.status_code == 200
        body = response.json()
        assert body["input"] == json.loads(sample_text)
        assert body["analysis"]["overall_assessment"]["risk_level"] == "High"

    def test_malformed_payload(self, client, api_key):
        response = client.post("/analyze", json={"payload": "{nope"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "malformed_json"

    def test_missing_key(self, client, no_api_key, sample_text, analysis_text):
        generator = StubGenerator(analysis_text)
        with patch("backend.gateway.MistralGenerator", return_value=generator):
            response = client.post("/analyze", json={"payload": sample_text})

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "credential_missing"
        assert generator.calls == []

    def test_model_returns_not_json(self, client, api_key, sample_text):
        with _stub("not json"):
            response = client.post("/analyze", json={"payload": sample_text})

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "malformed_json"

    def test_model_breaks_schema(self, client, api_key, sample_text, analysis_payload):
        analysis_payload["overall_assessment"]["risk_level"] = "Catastrophic"
        with _stub(json.dumps(analysis_payload)):
            response = client.post("/analyze", json={"payload": sample_text})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error"] == "schema_violation"
        assert detail["errors"][0]["loc"] == "overall_assessment.risk_level"

    def test_transport_error(self, client, api_key, sample_text):
        generator = StubGenerator(exc=TimeoutError("read timed out"))
        with patch("backend.gateway.MistralGenerator", return_value=generator):
            response = client.post("/analyze", json={"payload": sample_text})

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "transport_error"

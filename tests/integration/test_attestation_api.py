"""
Integration tests for the attestation API.

Tests the HTTP contract of analysis and stored-result endpoints.
"""
import uuid
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from attestcheck.config import get_settings
from attestcheck.exceptions import PersistenceError
from attestcheck.main import app
from attestcheck.services.analysis_store import AnalysisStore
from attestcheck.verification_engine.models import AttestationExtraction

ANALYZE_URL = "/api/v1/analyze-attestation"


def _stored_url(analysis_id) -> str:
    return f"/api/v1/analyses/{analysis_id}/attestations"


class TestAnalyzeAttestation:
    """Tests for POST /api/v1/analyze-attestation."""

    def test_success(self, client: TestClient, fake_oracle, request_payload, matching_extraction):
        fake_oracle.extraction = matching_extraction

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"success", "extraction", "comparison", "score", "overallLevel2Score", "message"}
        assert data["success"] is True
        assert data["message"] == "Attestation analysée avec succès"
        assert data["score"] == "VERT"
        assert data["overallLevel2Score"] == "VERT"
        assert data["extraction"] == matching_extraction.to_dict()
        assert data["comparison"] == {
            "nom_entreprise": "OK",
            "siret_siren": "OK",
            "adresse": "OK",
            "periode_validite": "OK",
            "activite_couverte": "OK",
            "coherence_globale": "OK",
        }

    def test_unreadable_document(self, client: TestClient, fake_oracle, request_payload):
        fake_oracle.extraction = AttestationExtraction.empty()

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 200
        data = response.json()
        assert data["extraction"]["document_lisible"] is False
        assert data["comparison"]["coherence_globale"] == "INCOMPLET"
        assert data["score"] == "ORANGE"

    def test_red_decennial_then_green_liability(
        self, client: TestClient, fake_oracle, request_payload, matching_extraction,
    ):
        fake_oracle.extraction = replace(matching_extraction, date_fin_couverture="01/01/2020")
        first = client.post(ANALYZE_URL, json=request_payload).json()

        fake_oracle.extraction = matching_extraction
        second = client.post(ANALYZE_URL, json=dict(request_payload, attestationType="rc_pro")).json()

        assert first["score"] == "ROUGE"
        assert second["score"] == "VERT"
        assert second["overallLevel2Score"] == "ROUGE"

    def test_missing_parameter(self, client: TestClient, fake_oracle, request_payload):
        del request_payload["fileBase64"]

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Missing or invalid required parameters"
        assert data["error_code"] == "ATT-100"
        assert data["details"]["errors"] == ["Missing parameter: fileBase64"]
        assert fake_oracle.calls == []

    def test_malformed_analysis_id(self, client: TestClient, request_payload):
        request_payload["analysisId"] = "analysis-42"

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 400

    def test_invalid_json_body(self, client: TestClient):
        response = client.post(
            ANALYZE_URL,
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ATT-100"

    def test_invalid_base64(self, client: TestClient, request_payload):
        request_payload["fileBase64"] = "%%%"

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 400

    def test_unknown_attestation_type(self, client: TestClient, request_payload):
        request_payload["attestationType"] = "multirisque"

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 400
        assert response.json()["error_code"] == "ATT-101"

    def test_file_too_large(self, client: TestClient, fake_oracle, request_payload, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_attestation_size_mb", 1)
        request_payload["fileBase64"] = "A" * (2 * 1024 * 1024)

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 413
        data = response.json()
        assert data["error"] == "File too large (max 1 MB)"
        assert data["error_code"] == "ATT-102"
        assert fake_oracle.calls == []

    def test_unknown_analysis(self, client: TestClient, fake_oracle, request_payload):
        request_payload["analysisId"] = str(uuid.uuid4())

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 404
        assert response.json()["error_code"] == "ATT-200"
        assert fake_oracle.calls == []

    def test_persistence_failure(self, client: TestClient, request_payload, monkeypatch):
        def failing_merge(self, analysis_id, *args, **kwargs):
            raise PersistenceError(details={"analysis_id": str(analysis_id)})

        monkeypatch.setattr(AnalysisStore, "merge_attestation", failing_merge)

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to save attestation analysis"
        assert data["error_code"] == "ATT-201"
        assert "success" not in data

    def test_rate_limited(self, client: TestClient):
        for _ in range(20):
            assert client.post(ANALYZE_URL, json={}).status_code == 400

        response = client.post(ANALYZE_URL, json={})

        assert response.status_code == 429
        assert response.json()["error_code"] == "ATT-429"
        assert response.headers["Retry-After"] == "60"


class TestStoredAttestations:
    """Tests for GET /api/v1/analyses/{analysis_id}/attestations."""

    def test_after_analysis(self, client: TestClient, fake_oracle, request_payload, matching_extraction, analysis):
        fake_oracle.extraction = replace(matching_extraction, siret_ou_siren="98765432100012")
        client.post(ANALYZE_URL, json=request_payload)

        response = client.get(_stored_url(analysis.id))

        assert response.status_code == 200
        data = response.json()
        assert data["analysis_id"] == str(analysis.id)
        assert data["assurance_source"] == "devis+attestation"
        assert data["overall_level2_score"] == "ROUGE"
        assert list(data["attestations"]) == ["decennale"]
        decennial = data["attestations"]["decennale"]
        assert decennial["comparison"]["siret_siren"] == "INCOHERENT"
        assert decennial["explanation"] == {"inconsistent": ["siret_siren"], "unconfirmed": []}

    def test_nothing_analyzed(self, client: TestClient, analysis):
        response = client.get(_stored_url(analysis.id))

        assert response.status_code == 200
        assert response.json()["attestations"] == {}
        assert response.json()["overall_level2_score"] is None

    def test_unknown_analysis(self, client: TestClient):
        response = client.get(_stored_url(uuid.uuid4()))

        assert response.status_code == 404
        assert response.json()["error_code"] == "ATT-200"

    def test_malformed_id(self, client: TestClient):
        response = client.get(_stored_url("not-a-uuid"))

        assert response.status_code == 422


class TestQuoteInfoValues:
    """Tests for quote snapshot value types."""

    def test_numeric_siret(self, client: TestClient, fake_oracle, request_payload, matching_extraction):
        fake_oracle.extraction = matching_extraction
        request_payload["quoteInfo"]["siret"] = 12345678900045

        response = client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 200
        assert response.json()["comparison"]["siret_siren"] == "OK"


class TestUnexpectedErrors:
    """Tests for the boundary handler of unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, client: TestClient, fake_oracle, request_payload, monkeypatch):
        def exploding_extract(content, mime_type):
            raise RuntimeError("oracle exploded")

        monkeypatch.setattr(fake_oracle, "extract", exploding_extract)
        unguarded_client = TestClient(app, raise_server_exceptions=False)

        response = unguarded_client.post(ANALYZE_URL, json=request_payload)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "oracle exploded"
        assert data["error_code"] == "ATT-999"

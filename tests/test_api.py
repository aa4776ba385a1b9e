"""
Tests for Document Section Preprocessor API endpoints.

Tests cover:
- Health check
- OpenAPI document
- Document preprocessing (success and error mapping)
- CORS allow-list
"""

import pytest


class TestHealthCheck:
    """Tests for the /health endpoint."""

    def test_health_check_returns_ok(self, client):
        """Health check should return status ok with uptime."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["uptime"] >= 0
        assert "timestamp" in data


class TestApiDocs:
    """Tests for the /api-docs.json endpoint."""

    def test_openapi_document_served(self, client):
        """The OpenAPI document lists the preprocess route and public server."""
        response = client.get("/api-docs.json")
        assert response.status_code == 200

        data = response.json()
        assert "/preprocess" in data["paths"]
        assert data["servers"][0]["url"] == "https://api.example.com"


class TestPreprocess:
    """Tests for the /preprocess endpoint."""

    def test_document_without_sections_echoed(self, client):
        """Documents without sections come back unchanged."""
        body = {"titulo": "Relatório", "autor": {"nome": "Ana"}}
        response = client.post("/preprocess", json=body)
        assert response.status_code == 200
        assert response.json() == body

    def test_sections_enriched(self, client, chart_config, raw_base64):
        """QR code, chart and photo sections are enriched."""
        body = {
            "titulo": "Relatório",
            "secoes": [
                {"componente": "texto", "conteudo": "Introdução"},
                {"componente": "foto", "conteudo": raw_base64},
                {"componente": "qrcode", "conteudo": "https://example.com"},
                {"componente": "grafico", "config": chart_config},
            ],
        }
        response = client.post("/preprocess", json=body)
        assert response.status_code == 200

        data = response.json()
        assert data["titulo"] == "Relatório"
        sections = data["secoes"]
        assert sections[0] == {"componente": "texto", "conteudo": "Introdução"}
        assert sections[1]["conteudo"] == f"data:image/png;base64,{raw_base64}"
        assert sections[2]["imagemBase64"].startswith("data:image/png;base64,")
        assert sections[3]["imagemBase64"].startswith("data:image/png;base64,")

    def test_qrcode_overflow_is_client_error(self, client, overflowing_text):
        """A QR code that cannot be encoded maps to 400."""
        body = {"secoes": [{"componente": "qrcode", "conteudo": overflowing_text}]}
        response = client.post("/preprocess", json=body)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Failed to generate QR code for: ")

    def test_chart_failure_is_server_error(self, client):
        """A chart that cannot be rendered maps to 500 with a generic message."""
        body = {"secoes": [{"componente": "grafico", "config": {"type": "unknown"}}]}
        response = client.post("/preprocess", json=body)
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to render chart."}

    @pytest.mark.parametrize(
        "body",
        [
            {"secoes": "not-a-list", "titulo": "x"},
            {"secoes": [1, {"componente": "texto"}]},
            {"secoes": {"a": 1}},
        ],
    )
    def test_irregular_sections_echoed(self, client, body):
        """Objects with sections that cannot be processed come back unchanged."""
        response = client.post("/preprocess", json=body)
        assert response.status_code == 200
        assert response.json() == body

    def test_non_object_body_rejected(self, client):
        """A body that is not a JSON object fails validation."""
        response = client.post("/preprocess", json=[1, 2])
        assert response.status_code == 422


class TestCORS:
    """Tests for the origin allow-list."""

    @pytest.mark.parametrize(
        "origin",
        [
            "https://app.example.com",
            "https://reports.trusted.org",
            "https://api.example.com",
        ],
    )
    def test_allowed_origins(self, client, origin):
        """Listed origins, suffix matches and the public API URL pass preflight."""
        response = client.options(
            "/preprocess",
            headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin

    def test_blocked_origin(self, client):
        """Other origins fail preflight."""
        response = client.options(
            "/preprocess",
            headers={"Origin": "https://evil.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    def test_request_without_origin_allowed(self, client):
        """Same-origin and server-to-server calls are unaffected."""
        response = client.get("/health")
        assert response.status_code == 200

"""Unit tests for the application factories in src.main.

Covers :func:`build_document_service` wiring from settings and the
:func:`create_app` lifespan that attaches the service to ``app.state``.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from src.config.settings import Settings
from src.main import build_document_service, create_app


def _settings(**overrides) -> Settings:
    """Build a Settings instance with no embedding credentials."""
    defaults = {
        "embedding_provider": "auto",
        "openai_api_key": "",
        "gemini_api_key": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestBuildDocumentService:
    def test_no_keys_means_keyword_only(self) -> None:
        service = build_document_service(_settings())
        status = service.get_rag_status()

        assert status.has_embedding_provider is False
        assert status.has_vector_store is True
        assert status.rag_enabled is False

    def test_openai_key_enables_rag(self) -> None:
        service = build_document_service(_settings(openai_api_key="sk-test"))
        status = service.get_rag_status()

        assert status.embedding_provider_type == "openai_embedding"
        assert status.vector_store_type == "in_memory"
        assert status.rag_enabled is True

    def test_gemini_used_when_openai_missing(self) -> None:
        service = build_document_service(_settings(gemini_api_key="g-test"))
        assert service.get_rag_status().embedding_provider_type == "gemini_embedding"

    def test_rag_disabled_skips_backends(self) -> None:
        service = build_document_service(_settings(openai_api_key="sk-test", rag_enabled=False))
        status = service.get_rag_status()

        assert status.has_embedding_provider is False
        assert status.has_vector_store is False

    def test_limits_come_from_settings(self) -> None:
        service = build_document_service(_settings(max_upload_bytes=2048))
        assert service.max_upload_bytes == 2048


class TestCreateApp:
    def test_lifespan_attaches_service(self) -> None:
        app = create_app(_settings())

        with TestClient(app) as client:
            assert app.state.document_service is not None
            resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        assert resp.json()["rag"]["rag_enabled"] is False

    def test_routes_are_registered(self) -> None:
        paths = {route.path for route in create_app(_settings()).routes}
        assert "/api/v1/documents" in paths
        assert "/api/v1/retrieve" in paths
        assert "/api/v1/rag/status" in paths
        assert "/api/v1/rag/embedding-provider" in paths
        assert "/api/v1/health" in paths

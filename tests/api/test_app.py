"""Tests for FastAPI application."""

from contextlib import ExitStack
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tagdiff.api import dependencies
from tagdiff.api.app import app
from tagdiff.api.dependencies import get_compare_service
from tagdiff.api.services import CompareService


@pytest.fixture
def service(simple_context):
    return CompareService(simple_context)


@pytest.fixture
def client(service):
    """Create test client backed by an in-memory repository."""
    app.dependency_overrides[get_compare_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestMetaEndpoints:
    """Test health and version endpoints."""

    def test_health_endpoint(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "git_available" in data
        assert data["tags_loaded"] is None

    def test_health_reports_loaded_tags(self, client, service, monkeypatch):
        """Test health reports the catalog size once loaded."""
        monkeypatch.setattr(app.state, "compare_service", service, raising=False)

        response = client.get("/health")

        assert response.json()["tags_loaded"] == 3

    def test_version_endpoint(self, client):
        """Test version endpoint."""
        response = client.get("/version")
        assert response.status_code == 200
        data = response.json()
        assert data["api_version"] == "v1"
        assert "rename_tracking" in data["supported_features"]


class TestChangesEndpoints:
    """Test JSON endpoints."""

    def test_tags(self, client):
        """Test tags are listed newest first."""
        response = client.get("/api/tags")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert [t["name"] for t in data["data"]["tags"]] == ["v3", "v2", "v1"]

    def test_changes(self, client):
        """Test composed changes between two tags."""
        response = client.get("/api/changes/v1/v3")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["changes"] == [
            {"path": "a.txt", "old_path": "", "kind": "A"},
            {"path": "b.txt", "old_path": "", "kind": "A"},
        ]
        assert data["counts"]["A"] == 2

    def test_changes_unknown_tag(self, client):
        """Test unknown tags map to 404."""
        response = client.get("/api/changes/v1/v9")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "TAG_NOT_FOUND"
        assert error["details"]["missing_tags"] == ["v9"]


class TestSiteEndpoints:
    """Test HTML pages, contents and assets."""

    def test_index(self, client):
        """Test the index page."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert 'value="v3"' in response.text
        assert '"/files/"' in response.text

    def test_files_page(self, client):
        """Test the pair page, with and without the .html suffix."""
        for url in ("/files/v1/v3", "/files/v1/v3.html"):
            response = client.get(url)
            assert response.status_code == 200
            assert 'data-name="a.txt"' in response.text
            assert 'data-name="b.txt"' in response.text

    def test_diff_page(self, client):
        """Test the single-file diff page."""
        response = client.get("/diff", params={"tag1": "v2", "tag2": "v3", "file": "a.txt"})

        assert response.status_code == 200
        assert 'data-file="a.txt"' in response.text

    def test_versions(self, client):
        """Test file content at both tags."""
        response = client.get("/versions", params={"tag1": "v2", "tag2": "v3", "file": "a.txt"})

        assert response.status_code == 200
        assert response.json() == {"content1": "1", "content2": "2"}

    def test_versions_missing_side_is_empty(self, client):
        """Test a file absent at one tag yields empty content."""
        response = client.get(
            "/versions", params={"tag1": '"v2"', "tag2": '"v3"', "file": '"b.txt"'}
        )

        assert response.status_code == 200
        assert response.json() == {"content1": "", "content2": "b"}

    def test_versions_missing_everywhere(self, client):
        """Test a file absent at both tags is a 404."""
        response = client.get("/versions", params={"tag1": "v1", "tag2": "v2", "file": "b.txt"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "FILE_NOT_FOUND"

    def test_versions_requires_parameters(self, client):
        """Test missing query parameters are rejected."""
        response = client.get("/versions", params={"tag1": "v1"})

        assert response.status_code == 422

    def test_content(self, client):
        """Test raw file content."""
        response = client.get("/content/v3/a.txt")

        assert response.status_code == 200
        assert response.text == "2"
        assert response.headers["content-type"].startswith("text/plain")

        assert client.get("/content/v1/a.txt").status_code == 404

    def test_static_assets(self, client):
        """Test packaged static assets."""
        response = client.get("/style.css")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/css")

        assert client.get("/missing.css").status_code == 404


class TestServiceLifecycle:
    """Test lazy construction and cleanup of the compare service."""

    def test_service_built_once(self, service, monkeypatch):
        """Test the service is built on first use and then reused."""
        calls = []

        class Factory:
            @staticmethod
            def from_config(config):
                calls.append(config)
                return service

        monkeypatch.setattr(dependencies, "CompareService", Factory)
        request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))

        assert get_compare_service(request) is service
        assert get_compare_service(request) is service
        assert len(calls) == 1
        assert request.app.state.compare_service is service

    def test_close_releases_resources(self, simple_context):
        """Test close runs the registered cleanup once."""
        released = []
        stack = ExitStack()
        stack.callback(released.append, "clone")
        service = CompareService(simple_context, resources=stack)

        service.close()
        service.close()

        assert released == ["clone"]

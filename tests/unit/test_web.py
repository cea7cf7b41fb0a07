"""Tests for web application functionality."""

import json

from fastapi.testclient import TestClient

from apps.web.main import app


class TestWebApp:
    """Test web application endpoints."""

    def setup_method(self):
        """Setup test fixtures."""
        self.client = TestClient(app)

    def test_health(self):
        """Should report the service as healthy."""
        response = self.client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_upgrade_api_success(self, sample_package_json):
        """Should upgrade the library and report the change."""
        response = self.client.post("/api/upgrade", json={
            "content": sample_package_json,
            "library": "express",
            "version": "4.19.0",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["has_changes"] is True
        assert data["original_content"] == sample_package_json
        assert json.loads(data["updated_content"])["dependencies"]["express"] == "4.19.0"
        assert data["changes"] == [
            {"kind": "dependencies", "current_version": "^4.18.0", "new_version": "4.19.0"}
        ]

    def test_upgrade_api_dependency_kinds(self, sample_package_json):
        """Should only look at the requested dependency kinds."""
        response = self.client.post("/api/upgrade", json={
            "content": sample_package_json,
            "library": "jest",
            "version": "29.1.0",
            "dependency_kinds": ["dependencies"],
        })

        assert response.status_code == 404
        assert "Usage of library 'jest' is not found in package.json" in response.json()["detail"]

    def test_upgrade_api_empty_dependency_kinds(self, sample_package_json):
        """Should not touch any section when an empty kinds list is sent."""
        response = self.client.post("/api/upgrade", json={
            "content": sample_package_json,
            "library": "express",
            "version": "4.19.0",
            "dependency_kinds": [],
        })

        assert response.status_code == 404
        assert "Usage of library 'express' is not found" in response.json()["detail"]

    def test_upgrade_api_empty_content(self):
        """Should handle empty content gracefully."""
        response = self.client.post("/api/upgrade", json={
            "content": "",
            "library": "express",
            "version": "4.19.0",
        })

        assert response.status_code == 400
        assert "No content provided" in response.json()["detail"]

    def test_upgrade_api_downgrade(self, sample_package_json):
        """Should refuse a downgrade with a conflict status."""
        response = self.client.post("/api/upgrade", json={
            "content": sample_package_json,
            "library": "express",
            "version": "4.17.0",
        })

        assert response.status_code == 409
        assert "'^4.18.0'" in response.json()["detail"]

    def test_upgrade_api_invalid_version(self, sample_package_json):
        """Should reject a range as the new version."""
        response = self.client.post("/api/upgrade", json={
            "content": sample_package_json,
            "library": "express",
            "version": "^4.19.0",
        })

        assert response.status_code == 400
        assert "is not valid version number" in response.json()["detail"]

    def test_upgrade_api_malformed_manifest(self):
        """Should reject content that is not JSON."""
        response = self.client.post("/api/upgrade", json={
            "content": "express==4.18.0",
            "library": "express",
            "version": "4.19.0",
        })

        assert response.status_code == 400
        assert "is not valid JSON" in response.json()["detail"]

    def test_upload_file(self, sample_package_json):
        """Should upgrade an uploaded package.json."""
        response = self.client.post(
            "/api/upload",
            files={"file": ("package.json", sample_package_json.encode("utf-8"), "application/json")},
            data={"library": "lodash", "version": "4.18.0"},
        )

        assert response.status_code == 200
        data = response.json()
        assert json.loads(data["updated_content"])["dependencies"]["lodash"] == "4.18.0"

    def test_upload_non_utf8_file(self):
        """Should reject files that are not UTF-8 text."""
        response = self.client.post(
            "/api/upload",
            files={"file": ("package.json", b"\xff\xfe\x00\x00", "application/json")},
            data={"library": "lodash", "version": "4.18.0"},
        )

        assert response.status_code == 400
        assert "UTF-8" in response.json()["detail"]

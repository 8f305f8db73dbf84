# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for health endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from classroom import __version__
from classroom.api.app import create_app


@pytest.fixture
def client():
    """Create test client without running the lifespan."""
    return TestClient(create_app())


class TestHealthEndpoints:
    """Tests for health and liveness checks."""

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_unhealthy_without_database(self, client):
        """Test that an unreachable database reports 503."""
        response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"]["status"] == "unhealthy"
        assert body["version"] == __version__

    @patch("classroom.api.routes.health.check_database_connection", new_callable=AsyncMock)
    def test_healthy(self, mock_check, client):
        """Test a reachable database reports healthy."""
        mock_check.return_value = True

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "development"

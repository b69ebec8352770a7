"""Fixtures for F6 tests - Web API, live threads and CLI."""

import pytest
from fastapi.testclient import TestClient

from examquiz.web.api import create_app


@pytest.fixture
def client(seeded):
    """Test client on a seeded temp database."""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def subject_id(client):
    """Id of Mathematics P1 for grade 12."""
    subjects = client.get("/api/subjects").json()
    return next(
        s["id"] for s in subjects if s["name"] == "Mathematics P1" and s["grade_number"] == 12
    )

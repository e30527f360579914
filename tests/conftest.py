"""
Shared fixtures for job portal tests.

Builds the Flask app on in-memory repositories so no MongoDB connection
is needed, with uploads written under pytest's tmp_path.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from job_portal.app import create_app
from job_portal.auth import register_user
from job_portal.config import AppEnv, PortalConfig
from job_portal.repositories import (
    InMemoryApplicationRepository,
    InMemoryJobRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
    Repositories,
)

TEST_PASSWORD = "pw123456"


@pytest.fixture
def config(tmp_path):
    """Development config with a fixed secret and the cheapest bcrypt cost."""
    return PortalConfig(
        session_secret="test-secret-key",
        upload_root=tmp_path / "uploads",
        env=AppEnv.DEVELOPMENT,
        bcrypt_rounds=4,
    )


@pytest.fixture
def repositories():
    return Repositories(
        users=InMemoryUserRepository(),
        sessions=InMemorySessionRepository(),
        jobs=InMemoryJobRepository(),
        applications=InMemoryApplicationRepository(),
    )


@pytest.fixture
def app(config, repositories):
    flask_app = create_app(config, repositories)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def services(app):
    return app.extensions["job_portal"]


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def employer(repositories):
    """A registered employer account."""
    return register_user(
        repositories.users,
        name="Erin Employer",
        email="erin@acme.com",
        password=TEST_PASSWORD,
        confirm_password=TEST_PASSWORD,
        role="employer",
        rounds=4,
    )


@pytest.fixture
def authenticated_client(client, employer):
    """Test client signed in as the employer fixture."""
    response = client.post(
        "/auth/login",
        data={"email": employer.email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 302
    return client

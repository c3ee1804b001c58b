"""
pytest configuration and fixtures for the catalog tests.
Provides storage isolation, sample users and an API test client.
"""

import pytest
from fastapi.testclient import TestClient
from catalog.api import app


@pytest.fixture
def client():
    """FastAPI test client for API integration tests."""
    return TestClient(app)


@pytest.fixture
def test_user():
    """Sample credentials that pass the registration rules."""
    return {
        "username": "testuser",
        "password": "secret123",
    }


@pytest.fixture
def temp_storage(monkeypatch, tmp_path):
    """Isolate file storage for tests.

    Redirects the credential file, the catalog document and the upload
    directory into a temporary directory. The data directory is not
    created up front so tests see the same bootstrap path as a fresh
    install.
    """
    data_dir = tmp_path / "data"
    users_file = data_dir / "users.json"
    products_file = data_dir / "products.json"
    uploads_dir = tmp_path / "static" / "uploads"

    import catalog.auth as auth
    monkeypatch.setattr(auth, "USERS_FILE", users_file)

    import catalog.products as products
    monkeypatch.setattr(products, "PRODUCTS_FILE", products_file)
    monkeypatch.setattr(products, "UPLOADS_DIR", uploads_dir)

    return {
        "data_dir": data_dir,
        "users_file": users_file,
        "products_file": products_file,
        "uploads_dir": uploads_dir,
    }


@pytest.fixture
def registered_user(temp_storage, test_user):
    """A user already present in the credential file."""
    from catalog.auth import register_user

    register_user(test_user["username"], test_user["password"])
    return test_user


@pytest.fixture
def sample_image():
    """A few bytes standing in for an uploaded PNG."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

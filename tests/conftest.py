"""Shared fixtures: a redirect file in a temp dir, a store on it, and an HTTP client."""

import pytest
from fastapi.testclient import TestClient

from shorty.main import create_app
from shorty.services.redirect_store import RedirectStore


@pytest.fixture
def redirect_file(tmp_path):
    return tmp_path / "redirs.json"


@pytest.fixture
def store(redirect_file):
    return RedirectStore(str(redirect_file))


@pytest.fixture
def broken_store(tmp_path):
    """Store whose file lives in a directory that does not exist, so every write fails."""
    return RedirectStore(str(tmp_path / "missing" / "redirs.json"))


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as test_client:
        yield test_client

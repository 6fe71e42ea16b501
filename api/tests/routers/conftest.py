import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.rate_limit import limiter
from app.core.runtime import build_runtime
from app.main import app


@pytest.fixture
def runtime(file_sessionmaker, fake_pluggy):
    """Runtime on a file-backed database with the fake Pluggy client injected."""
    runtime = build_runtime(settings, file_sessionmaker, provider=fake_pluggy)
    app.state.runtime = runtime
    limiter.reset()
    yield runtime
    del app.state.runtime


@pytest.fixture
def client(runtime) -> TestClient:
    # Not used as a context manager: the lifespan would replace the injected runtime
    return TestClient(app)


@pytest.fixture
def run():
    """Run a gateway coroutine from a sync test."""
    return asyncio.run

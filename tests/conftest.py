"""Shared test fixtures."""

import os

# Settings require a signing secret at import time
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import api


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for the FastAPI app (no lifespan, no DB needed)."""
    transport = ASGITransport(app=api)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

"""Pytest fixtures and shared test configuration.

Fixtures:
    - fake_backend: Scriptable stand-in for the Workers AI run endpoint
    - inference_client: InferenceClient wired to the fake backend
    - relay_app: FastAPI app using that client
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from relay_chat.api.app import create_app
from relay_chat.api.chat import provide_inference_client
from relay_chat.backend.client import InferenceClient
from relay_chat.backend.config import BackendConfig
from tests.fakes import FakeBackend


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_config() -> BackendConfig:
    return BackendConfig(
        account_id="acct-123",
        api_token="test-token",
        model_name="@cf/meta/llama-4-scout-17b-16e-instruct",
        base_url="https://ai.example.test/client/v4",
        max_tokens=8000,
    )


@pytest.fixture
async def inference_client(
    fake_backend: FakeBackend, backend_config: BackendConfig
) -> AsyncGenerator[InferenceClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_backend.handle))
    client = InferenceClient(config=backend_config, http_client=http_client)
    yield client
    await client.aclose()


@pytest.fixture
def relay_app(inference_client: InferenceClient) -> FastAPI:
    app = create_app()
    app.dependency_overrides[provide_inference_client] = lambda: inference_client
    return app


@pytest.fixture
async def async_client(relay_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=relay_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

"""Integration tests for the streaming relay endpoint.

Tests the real FastAPI app over httpx ASGITransport. Only the inference
backend is replaced, by an httpx MockTransport serving scripted events.
"""

import json
from collections.abc import AsyncIterator
from unittest.mock import patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from relay_chat.api.app import create_app
from relay_chat.backend import client as backend_client
from tests.fakes import FakeBackend, sse_event, token_events

HELLO = {"messages": [{"role": "user", "content": "hi"}]}


class TestStreamingEndpoint:
    """Integration tests for POST /api/chat."""

    async def test_streams_raw_concatenated_tokens(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """The body is the fragments joined in order, with no framing."""
        fake_backend.reply("He", "llo", " there")

        async with async_client.stream("POST", "/api/chat", json=HELLO) as response:
            assert response.status_code == 200
            body = "".join([text async for text in response.aiter_text()])

        assert body == "Hello there"

    async def test_identity_encoding_and_plain_text(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        fake_backend.reply("ok")

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.headers["content-encoding"].lower() == "identity"
        assert response.headers["content-type"].startswith("text/plain")

    async def test_end_marker_never_rendered(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """Only fragments before the sentinel reach the client."""
        fake_backend.reply_raw(token_events("a", "b") + token_events("after"))

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.text == "ab"
        assert "[DONE]" not in response.text

    async def test_data_less_event_does_not_interrupt_stream(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """Keep-alive blocks between tokens are ignored."""
        fake_backend.reply_raw(
            b'data:{"response":"a"}\n\n' + b"event: ping\n\n" + token_events("b")
        )

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.text == "ab"

    async def test_system_message_prepended(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        await async_client.post(
            "/api/chat", json={**HELLO, "config": {"systemMessage": "be terse"}}
        )

        assert fake_backend.last_payload["messages"] == [
            {"role": "system", "content": "be terse"},
            {"role": "user", "content": "hi"},
        ]

    async def test_messages_forwarded_unchanged_without_config(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        await async_client.post("/api/chat", json=HELLO)

        payload = fake_backend.last_payload
        assert payload["messages"] == [{"role": "user", "content": "hi"}]
        assert payload["max_tokens"] == 8000
        assert payload["stream"] is True

    @pytest.mark.parametrize("config", [{}, {"systemMessage": ""}, {"systemMessage": None}])
    async def test_empty_system_message_not_prepended(
        self, async_client: AsyncClient, fake_backend: FakeBackend, config: dict
    ) -> None:
        await async_client.post("/api/chat", json={**HELLO, "config": config})

        assert fake_backend.last_payload["messages"] == [{"role": "user", "content": "hi"}]

    async def test_empty_messages_forwarded(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """The relay does not validate non-emptiness itself."""
        response = await async_client.post("/api/chat", json={"messages": []})

        assert response.status_code == 200
        assert fake_backend.last_payload["messages"] == []

    async def test_requests_are_independent(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """A system prompt in one request does not leak into the next."""
        await async_client.post(
            "/api/chat", json={**HELLO, "config": {"systemMessage": "be terse"}}
        )
        await async_client.post("/api/chat", json=HELLO)

        assert fake_backend.last_payload["messages"] == [{"role": "user", "content": "hi"}]


class TestStreamingErrorHandling:
    """Tests for error scenarios in the relay endpoint."""

    async def test_backend_error_status_returns_502(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        fake_backend.status_code = 500
        fake_backend.reply_raw(b"internal error")

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.status_code == 502
        assert "detail" in response.json()

    async def test_missing_credentials_return_502(self) -> None:
        """A relay started without a token answers 502 instead of crashing."""
        app = create_app()
        backend_client._inference_client = None
        try:
            with patch.dict("os.environ", {"CLOUDFLARE_API_TOKEN": ""}):
                transport = ASGITransport(app=app)
                async with AsyncClient(transport=transport, base_url="http://test") as client:
                    response = await client.post("/api/chat", json=HELLO)
        finally:
            backend_client._inference_client = None

        assert response.status_code == 502
        assert response.json() == {"detail": "Inference backend unavailable"}

    async def test_backend_unreachable_returns_502(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        fake_backend.error = httpx.ConnectError("connection refused")

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.status_code == 502

    async def test_mid_stream_failure_truncates_body(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        """After streaming starts, a backend failure ends the body early."""

        async def broken_body() -> AsyncIterator[bytes]:
            yield sse_event(json.dumps({"response": "Hel"}))
            raise httpx.ReadError("connection reset")

        fake_backend.body_factory = broken_body

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.status_code == 200
        assert response.text == "Hel"

    async def test_malformed_event_aborts_stream(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        fake_backend.reply_raw(
            sse_event(json.dumps({"response": "a"})) + sse_event("{oops") + token_events("b")
        )

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.status_code == 200
        assert response.text == "a"

    async def test_error_event_aborts_stream(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        fake_backend.reply_raw(
            sse_event(json.dumps({"response": "a"})) + b"event: error\ndata: overloaded\n\n"
        )

        response = await async_client.post("/api/chat", json=HELLO)

        assert response.text == "a"

    async def test_invalid_role_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/chat", json={"messages": [{"role": "robot", "content": "hi"}]}
        )

        assert response.status_code == 422

    async def test_missing_messages_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/chat", json={})

        assert response.status_code == 422

    async def test_invalid_json_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/chat",
            content="not valid json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    async def test_wrong_http_method_returns_405(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/chat")

        assert response.status_code == 405

    async def test_cors_headers_present(
        self, async_client: AsyncClient, fake_backend: FakeBackend
    ) -> None:
        response = await async_client.post(
            "/api/chat", json=HELLO, headers={"Origin": "http://localhost:3000"}
        )

        assert "access-control-allow-origin" in response.headers


async def test_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")

    assert response.json() == {"status": "healthy", "service": "relay-chat"}

"""Integration tests for the SSE streaming chat endpoint.

Tests real streaming behavior with httpx AsyncClient and ASGITransport.
The FastAPI app is real; only the provider adapter is scripted.
"""

import json

import pytest_check as check
from httpx import ASGITransport, AsyncClient

from opendocs.api.app import create_app
from opendocs.models.schemas import DoneEvent, ErrorEvent, FragmentEvent, stream_event_adapter
from opendocs.relay import prompts
from opendocs.transport.bridge import ChatChannel
from opendocs.transport.http import HttpTransport
from tests.conftest import ScriptedAdapter, make_request


def _payload(**overrides) -> dict:
    payload = {
        "messages": [{"role": "user", "content": "Say hello"}],
        "apiKey": "test-key",
    }
    payload.update(overrides)
    return payload


async def _read_events(client: AsyncClient, payload: dict) -> list:
    events = []
    async with client.stream("POST", "/chat/stream", json=payload) as response:
        assert response.status_code == 200
        async for line in response.aiter_lines():
            if line.startswith("data: "):
                events.append(stream_event_adapter.validate_json(line[6:]))
    return events


class TestStreamingEndpoint:
    """Integration tests for POST /chat/stream SSE endpoint."""

    async def test_stream_returns_sse_content_type(self, async_client: AsyncClient) -> None:
        """Streaming endpoint returns text/event-stream media type."""
        async with async_client.stream("POST", "/chat/stream", json=_payload()) as response:
            check.equal(response.status_code, 200)
            check.is_in("text/event-stream", response.headers["content-type"])
            check.equal(response.headers["cache-control"], "no-cache, no-transform")
            check.is_in("x-exchange-id", response.headers)

    async def test_stream_events_in_order(self, async_client: AsyncClient) -> None:
        """Fragments arrive in order and done is the last event."""
        events = await _read_events(async_client, _payload(exchangeId="abc123"))

        assert events == [
            FragmentEvent(exchange_id="abc123", text="Hel"),
            FragmentEvent(exchange_id="abc123", text="lo"),
            DoneEvent(exchange_id="abc123"),
        ]

    async def test_sse_wire_format(self, async_client: AsyncClient) -> None:
        """Each event is one JSON object on a data line."""
        async with async_client.stream("POST", "/chat/stream", json=_payload()) as response:
            body = (await response.aread()).decode()

        blocks = [block for block in body.split("\n\n") if block]
        check.equal(len(blocks), 3)
        for block in blocks:
            check.is_true(block.startswith("data: "))
            data = json.loads(block[6:])
            check.is_in(data["type"], {"fragment", "done"})

    async def test_wire_aliases_reach_relay(self, async_client, hello_adapter) -> None:
        """camelCase payload fields map onto the request model."""
        await _read_events(
            async_client,
            _payload(
                context="Doc body",
                customInstructions="Reply in haiku",
                model="gemini-2.5-flash",
            ),
        )

        model, system_instruction, _ = hello_adapter.calls[0]
        check.equal(model, "gemini-2.5-flash")
        check.is_in("Doc body", system_instruction)
        check.is_in("Reply in haiku", system_instruction)
        check.equal(hello_adapter.api_keys, ["test-key"])

    async def test_missing_api_key_yields_error_event(self, async_client: AsyncClient) -> None:
        payload = _payload()
        del payload["apiKey"]

        events = await _read_events(async_client, payload)

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].message == prompts.API_KEY_MISSING_MESSAGE

    async def test_provider_error_yields_error_event(self, make_relay) -> None:
        relay = make_relay(ScriptedAdapter(["par"], error=RuntimeError("request timed out")))
        transport = ASGITransport(app=create_app(relay=relay))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            events = await _read_events(client, _payload())

        assert [type(e) for e in events] == [FragmentEvent, ErrorEvent]
        assert events[-1].message == prompts.TIMEOUT_ERROR_MESSAGE

    async def test_missing_messages_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/chat/stream", json={"apiKey": "k"})

        assert response.status_code == 422

    async def test_invalid_json_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/chat/stream",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    async def test_invalid_role_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/chat/stream", json=_payload(messages=[{"role": "robot", "content": "hi"}])
        )

        assert response.status_code == 422

    async def test_get_not_allowed(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/chat/stream")

        assert response.status_code == 405


class TestCancelEndpoint:
    """Tests for POST /chat/cancel/{exchange_id}."""

    async def test_cancel_unknown_exchange(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/chat/cancel/nope")

        assert response.status_code == 200
        assert response.json() == {"exchange_id": "nope", "cancelled": False}


class TestAppShell:
    """Tests for health check and middleware."""

    async def test_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "opendocs"}

    async def test_cors_headers(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health", headers={"Origin": "http://localhost:8080"})

        assert "access-control-allow-origin" in response.headers


class TestHttpTransport:
    """End-to-end tests: ChatChannel over HttpTransport against the app."""

    async def test_channel_over_http(self, async_client: AsyncClient) -> None:
        calls = []
        channel = ChatChannel(HttpTransport("http://test", client=async_client))

        channel.stream_chat(
            make_request("Hi"),
            lambda text: calls.append(("fragment", text)),
            lambda: calls.append(("done",)),
            lambda message: calls.append(("error", message)),
        )
        await channel.wait_idle()

        assert calls == [("fragment", "Hel"), ("fragment", "lo"), ("done",)]
        assert channel.listener_count == 0

    async def test_http_error_reaches_error_listener(self, async_client: AsyncClient) -> None:
        """A non-2xx response is reported through the error listener."""
        errors = []
        channel = ChatChannel(HttpTransport("http://test/missing", client=async_client))

        channel.stream_chat(make_request("Hi"), lambda _: None, lambda: None, errors.append)
        await channel.wait_idle()

        assert len(errors) == 1
        assert errors[0].startswith("Error: ")

    async def test_cancel_over_http(self, async_client: AsyncClient) -> None:
        transport = HttpTransport("http://test", client=async_client)

        assert await transport.cancel("nope") is False

    async def test_missing_key_over_http(self, async_client: AsyncClient) -> None:
        errors = []
        channel = ChatChannel(HttpTransport("http://test", client=async_client))

        channel.stream_chat(make_request("Hi", api_key=""), lambda _: None, lambda: None, errors.append)
        await channel.wait_idle()

        assert errors == [prompts.API_KEY_MISSING_MESSAGE]

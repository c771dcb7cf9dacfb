"""Pytest fixtures and shared test configuration.

Fixtures:
    - relay_config: Deterministic relay configuration
    - make_adapter / relay: Relay driven by a scripted adapter
    - async_client: HTTPX client for API testing
    - make_pdf / sample_pdf_path: Small generated PDFs with known text
"""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from opendocs.api.app import create_app
from opendocs.models.schemas import ChatMessage, ChatRequest, Role
from opendocs.providers.base import ProviderAdapter
from opendocs.relay.config import RelayConfig
from opendocs.relay.relay import ChatRelay


class ScriptedAdapter(ProviderAdapter):
    """Adapter that replays fixed chunks, then optionally fails or hangs."""

    def __init__(
        self,
        chunks: Sequence[object] = (),
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.hang = hang
        self.calls: list[tuple[str, str, list[ChatMessage]]] = []
        self.api_keys: list[str] = []
        self.closed = False

    async def stream(
        self,
        model: str,
        system_instruction: str,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        self.calls.append((model, system_instruction, list(messages)))
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def close(self) -> None:
        self.closed = True


def factory_for(adapter: ScriptedAdapter) -> Callable[[RelayConfig, str], ProviderAdapter]:
    def factory(config: RelayConfig, api_key: str) -> ProviderAdapter:
        adapter.api_keys.append(api_key)
        return adapter

    return factory


async def collect(events: AsyncIterator) -> list:
    return [event async for event in events]


def make_request(*contents: str, **kwargs) -> ChatRequest:
    """Build a request alternating user and assistant turns, user first."""
    messages = [
        ChatMessage(role=Role.USER if i % 2 == 0 else Role.ASSISTANT, content=content)
        for i, content in enumerate(contents)
    ]
    kwargs.setdefault("api_key", "test-key")
    return ChatRequest(messages=messages, **kwargs)


def build_pdf(page_texts: Sequence[str]) -> bytes:
    """Write a minimal PDF with one line of Helvetica text per page."""
    page_ids = [4 + 2 * i for i in range(len(page_texts))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, text in zip(page_ids, page_texts, strict=True):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


@pytest.fixture
def relay_config() -> RelayConfig:
    """Relay configuration independent of the environment."""
    return RelayConfig(provider="gemini", model_name="test-model", max_attachment_bytes=1024 * 1024)


@pytest.fixture
def make_relay(relay_config: RelayConfig) -> Callable[[ScriptedAdapter], ChatRelay]:
    def _make(adapter: ScriptedAdapter) -> ChatRelay:
        return ChatRelay(config=relay_config, adapter_factory=factory_for(adapter))

    return _make


@pytest.fixture
def hello_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(["Hel", "lo"])


@pytest.fixture
def relay(make_relay, hello_adapter: ScriptedAdapter) -> ChatRelay:
    return make_relay(hello_adapter)


@pytest.fixture
async def async_client(relay: ChatRelay) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        AsyncClient bound to an app serving the scripted relay.
    """
    transport = ASGITransport(app=create_app(relay=relay))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_pdf() -> Callable[[Sequence[str]], bytes]:
    return build_pdf


@pytest.fixture
def sample_pdf_path(tmp_path: Path) -> Path:
    """Three-page PDF on disk."""
    path = tmp_path / "sample.pdf"
    path.write_bytes(build_pdf(["Alpha page text", "Beta page text", "Gamma page text"]))
    return path

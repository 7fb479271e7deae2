import asyncio
from typing import Any, AsyncIterator, Callable

import httpx
import pytest

from sse_json_stream._client import StreamHttpClient
from sse_json_stream._config import HttpConfig
from sse_json_stream.request import StreamRequestConfig
from sse_json_stream.stream import EventStream

BASE_URL = "https://example.com"


def sse_response(*chunks: str | bytes, gate: asyncio.Event | None = None, status: int = 200) -> httpx.Response:
    """
    Streaming response whose body arrives in exactly the given chunks.
    With ``gate``, the body stalls after the last chunk until the gate is set.
    """

    async def body() -> AsyncIterator[bytes]:
        for chunk in chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        if gate is not None:
            await gate.wait()

    return httpx.Response(status, headers={"content-type": "text/event-stream"}, content=body())


class Recorder:
    """Collects every lifecycle event emitted by a stream, in order."""

    def __init__(self, stream: EventStream) -> None:
        self.log: list[tuple[str, Any]] = []
        self.first_message = asyncio.Event()
        stream.add_event_listener("message", self.on_message)
        stream.add_event_listener("error", lambda e: self.log.append(("error", e)))
        stream.add_event_listener("close", lambda r: self.log.append(("close", r)))

    def on_message(self, message: Any) -> None:
        self.log.append(("message", message))
        self.first_message.set()

    def of(self, kind: str) -> list[Any]:
        return [value for k, value in self.log if k == kind]


@pytest.fixture
def make_client() -> Callable[..., StreamHttpClient]:
    def factory(handler: Callable[[httpx.Request], Any], **config: Any) -> StreamHttpClient:
        return StreamHttpClient(
            config=HttpConfig(base_url=BASE_URL, **config),
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def make_stream(make_client) -> Callable[..., EventStream]:
    def factory(handler: Callable[[httpx.Request], Any], url: Any = "/stream", **request: Any) -> EventStream:
        return EventStream(StreamRequestConfig(url=url, **request), client=make_client(handler))

    return factory


@pytest.fixture(name="sse_response")
def sse_response_fixture() -> Callable[..., httpx.Response]:
    return sse_response


@pytest.fixture
def record() -> Callable[[EventStream], Recorder]:
    return Recorder

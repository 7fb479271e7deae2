"""
Event stream controller: owns the lifecycle of one streaming request at a time.

Usage:
    stream = EventStream(StreamRequestConfig(url="https://example.com/stream", method="POST"))

    stream.add_event_listener("message", lambda message: print(message.data))
    stream.add_event_listener("error", lambda error: print("failed:", error))
    stream.add_event_listener("close", lambda reason: print("closed:", reason))

    await stream.connect({"prompt": "hello"})
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional

from sse_json_stream._client import StreamHttpClient
from sse_json_stream._config import HttpConfig
from sse_json_stream._emitter import EventEmitter, Listener
from sse_json_stream._errors import StreamStateError
from sse_json_stream._sse import IncrementalEventParser, StreamMessage
from sse_json_stream.request import RequestDescriptor, StreamRequestConfig

StreamEventType = Literal["message", "error", "close"]


class FinishReason(str, Enum):
    DONE = "done"
    ERROR = "error"
    ABORT = "abort"
    UNKNOWN = "unknown"


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED_DONE = "closed-done"
    CLOSED_ERROR = "closed-error"
    CLOSED_ABORTED = "closed-aborted"


_CLOSED_STATES = {
    FinishReason.DONE: StreamState.CLOSED_DONE,
    FinishReason.ERROR: StreamState.CLOSED_ERROR,
    FinishReason.ABORT: StreamState.CLOSED_ABORTED,
    FinishReason.UNKNOWN: StreamState.CLOSED_ABORTED,
}


@dataclass(slots=True)
class _Connection:
    """Cancellation token and in-flight task of one connection attempt."""

    token: asyncio.Event = field(default_factory=asyncio.Event)
    parser: IncrementalEventParser = field(default_factory=IncrementalEventParser)
    task: Optional[asyncio.Task[None]] = None

    @property
    def cancelled(self) -> bool:
        return self.token.is_set()


class EventStream:
    """
    Connects to an SSE endpoint and republishes its events to listeners.

    Events:
        - "message": one StreamMessage per parsed event, in arrival order.
        - "error": the exception that ended the connection (HttpError,
          ProtocolError, TransportError or a failing listener).
        - "close": exactly once per connection attempt, with its FinishReason.

    A second ``connect`` while a connection is active raises StreamStateError.
    After ``close`` the stream is idle again and can be reconnected.
    """

    def __init__(
        self,
        config: StreamRequestConfig,
        *,
        client: StreamHttpClient | None = None,
        http_config: HttpConfig | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or StreamHttpClient(config=http_config or HttpConfig.from_env())
        self._emitter = EventEmitter()
        self._connection: _Connection | None = None
        self._state = StreamState.IDLE
        self._last_finish_reason: FinishReason | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def last_finish_reason(self) -> FinishReason | None:
        return self._last_finish_reason

    def add_event_listener(self, type: StreamEventType, listener: Listener) -> None:
        self._emitter.on(type, listener)

    def remove_event_listener(self, type: StreamEventType, listener: Listener) -> None:
        self._emitter.off(type, listener)

    async def connect(self, params: Any = None) -> None:
        """
        Open the stream and deliver its events until it ends.

        Errors from the request or the body are reported through the "error"
        event, never raised. A failing "error" or "close" listener is logged,
        not raised. Returns once "close" has been emitted.

        Raises:
            StreamStateError: A connection is already active.
            asyncio.CancelledError: The awaiting task itself was cancelled
                (reported with FinishReason.UNKNOWN before re-raising).
        """
        if self._connection is not None:
            raise StreamStateError(f"Stream is already active (state={self._state.value})")

        connection = _Connection()
        self._connection = connection
        self._set_state(StreamState.CONNECTING)

        reason = FinishReason.UNKNOWN
        error: BaseException | None = None
        outer_cancel: asyncio.CancelledError | None = None

        connection.task = asyncio.ensure_future(self._pump(connection, params))
        try:
            await connection.task
            reason = FinishReason.ABORT if connection.cancelled else FinishReason.DONE
        except asyncio.CancelledError as e:
            if connection.cancelled:
                reason = FinishReason.ABORT
            else:
                # Cancelled from outside: stop the pump, report, then propagate.
                connection.task.cancel()
                outer_cancel = e
                # The response must be released before "close" goes out.
                with contextlib.suppress(asyncio.CancelledError):
                    await connection.task
        except Exception as e:
            if connection.cancelled:
                reason = FinishReason.ABORT
            else:
                reason = FinishReason.ERROR
                error = e

        try:
            self._last_finish_reason = reason
            self._set_state(_CLOSED_STATES[reason])
            if error is not None:
                logging.debug("Stream failed: %r", error)
                self._emit_terminal("error", error)
            self._emit_terminal("close", reason)
        finally:
            self._connection = None
            self._set_state(StreamState.IDLE)

        if outer_cancel is not None:
            raise outer_cancel

    def disconnect(self) -> None:
        """
        Cancel the active connection; a no-op when there is none.

        The pending ``connect`` ends with FinishReason.ABORT and no "error".
        """
        connection = self._connection
        if connection is None or connection.cancelled:
            return

        logging.debug("Stream disconnect requested")
        connection.token.set()
        task = connection.task
        # From inside a listener the pump stops at its next token check instead.
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _pump(self, connection: _Connection, params: Any) -> None:
        descriptor: RequestDescriptor = self._config.resolve(params)

        async with self._client.open_stream(descriptor) as resp:
            if connection.cancelled:
                return
            self._set_state(StreamState.STREAMING)

            async for chunk in resp.aiter_text():
                if not self._dispatch(connection, connection.parser.feed(chunk)):
                    return

    def _dispatch(self, connection: _Connection, messages: list[StreamMessage]) -> bool:
        for message in messages:
            if connection.cancelled:
                return False
            self._emitter.emit("message", message)
        return not connection.cancelled

    def _emit_terminal(self, type: StreamEventType, payload: Any) -> None:
        # The connection is already over here: listener failures are logged, not raised.
        try:
            self._emitter.emit(type, payload)
        except Exception:
            logging.exception("Stream %r listener failed", type)

    def _set_state(self, state: StreamState) -> None:
        if state is not self._state:
            logging.debug("Stream state %s -> %s", self._state.value, state.value)
            self._state = state

    async def aclose(self) -> None:
        """Disconnect and close the HTTP client when this stream created it."""
        self.disconnect()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

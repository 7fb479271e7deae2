"""
Awaitable adapter over an EventStream: collapses the event lifecycle into a single result.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from sse_json_stream._errors import StreamAbortedError
from sse_json_stream._sse import StreamMessage
from sse_json_stream.stream import EventStream, FinishReason

OnMessage = Callable[[StreamMessage], Union[None, Awaitable[None]]]


async def with_promise(
    stream: EventStream,
    params: Any = None,
    *,
    on_message: Optional[OnMessage] = None,
) -> StreamMessage | None:
    """
    Connect ``stream`` and wait for it to finish.

    Args:
        stream: The stream to connect; it must be idle.
        params: Parameters passed to ``stream.connect``.
        on_message: Optional callback (sync or async) run for every message.
            If it raises, the stream is disconnected and the exception is raised here.

    Returns:
        The last message received, or None when the stream produced none.

    Raises:
        HttpError, ProtocolError, TransportError: The error that ended the stream.
        StreamAbortedError: The stream was disconnected before it finished.
        asyncio.CancelledError: The awaiting task was cancelled; the stream closes
            with FinishReason.UNKNOWN and the cancellation propagates.

    Example:
        >>> last = await with_promise(stream, {"prompt": "hi"}, on_message=print)
    """
    latest: StreamMessage | None = None
    failure: BaseException | None = None
    reason: FinishReason | None = None
    pending: list[asyncio.Future[Any]] = []

    def fail(error: BaseException) -> None:
        nonlocal failure
        if failure is None:
            failure = error
        stream.disconnect()

    def on_callback_done(fut: asyncio.Future[Any]) -> None:
        if not fut.cancelled() and fut.exception() is not None:
            fail(fut.exception())

    def handle_message(message: StreamMessage) -> None:
        nonlocal latest
        latest = message
        if on_message is None:
            return
        try:
            result = on_message(message)
        except Exception as e:
            fail(e)
            return
        if inspect.isawaitable(result):
            fut = asyncio.ensure_future(result)
            fut.add_done_callback(on_callback_done)
            pending.append(fut)

    def handle_error(error: BaseException) -> None:
        if failure is None:
            fail(error)

    def handle_close(finish_reason: FinishReason) -> None:
        nonlocal reason
        reason = finish_reason

    stream.add_event_listener("message", handle_message)
    stream.add_event_listener("error", handle_error)
    stream.add_event_listener("close", handle_close)

    try:
        await stream.connect(params)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    finally:
        stream.remove_event_listener("message", handle_message)
        stream.remove_event_listener("error", handle_error)
        stream.remove_event_listener("close", handle_close)

    if failure is not None:
        raise failure
    if reason is FinishReason.ABORT:
        raise StreamAbortedError("Stream was disconnected before it finished.")
    return latest

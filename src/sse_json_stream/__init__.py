from __future__ import annotations

from sse_json_stream._client import StreamHttpClient
from sse_json_stream._config import HttpConfig
from sse_json_stream._emitter import EventEmitter
from sse_json_stream._errors import (
    HttpError,
    ProtocolError,
    StreamAbortedError,
    StreamError,
    StreamStateError,
    TransportError,
)
from sse_json_stream._sse import IncrementalEventParser, StreamMessage, iter_sse_events_from_text
from sse_json_stream.promise import with_promise
from sse_json_stream.request import RequestDescriptor, StreamRequestConfig
from sse_json_stream.stream import EventStream, FinishReason, StreamState

__all__ = [
    "EventEmitter",
    "EventStream",
    "FinishReason",
    "HttpConfig",
    "HttpError",
    "IncrementalEventParser",
    "ProtocolError",
    "RequestDescriptor",
    "StreamAbortedError",
    "StreamError",
    "StreamHttpClient",
    "StreamMessage",
    "StreamRequestConfig",
    "StreamState",
    "StreamStateError",
    "TransportError",
    "iter_sse_events_from_text",
    "with_promise",
]

__version__ = "0.1.0"

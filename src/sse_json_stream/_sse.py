"""
Incremental parser for Server-Sent Events (SSE) that turns arbitrarily fragmented
text chunks into structured events with JSON-decoded data.

See: https://html.spec.whatwg.org/multipage/server-sent-events.html#event-stream-interpretation
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Iterator

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class StreamMessage:
    """
    Data structure representing a single Server-Sent Event (SSE).
    The 'data' field holds the decoded JSON value, or the raw string when it is not valid JSON.
    """

    data: Any
    event: str | None = None
    id: str | None = None
    retry: int | float | None = None


def _parse_retry(value: str) -> int | float | None:
    # An empty value counts as zero; digit separators are not numbers on the wire.
    if not value:
        return 0
    if "_" in value:
        return None
    try:
        retry = float(value)
    except ValueError:
        return None
    if not math.isfinite(retry):
        return None
    return int(retry) if retry.is_integer() else retry


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _decode_data(data: str) -> Any:
    try:
        return json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return data


class IncrementalEventParser:
    """
    Stateful SSE-to-JSON transducer.

    Chunks are fed in arrival order; the parser keeps the unfinished tail of the
    stream in its buffer, so the same events come out regardless of where the
    transport split the body.

    Example:
        >>> parser = IncrementalEventParser()
        >>> parser.feed('data: {"text":')
        []
        >>> parser.feed('"hi"}\\n\\n')
        [StreamMessage(data={'text': 'hi'}, event=None, id=None, retry=None)]
    """

    __slots__ = ("_buffer", "_skip_lf")

    def __init__(self) -> None:
        self._buffer = ""
        # Set when the text so far ended in CR: a leading LF in the next chunk completes that CRLF.
        self._skip_lf = False

    @property
    def buffer(self) -> str:
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""
        self._skip_lf = False

    def feed(self, chunk: str) -> list[StreamMessage]:
        """
        Parse a chunk of SSE text.

        Args:
            chunk: The next decoded piece of the response body.

        Returns:
            The events completed by this chunk, in arrival order.
        """
        if not chunk:
            return []
        if self._skip_lf and chunk.startswith("\n"):
            chunk = chunk[1:]
        self._skip_lf = chunk.endswith("\r")

        self._buffer += chunk
        lines = _LINE_BREAK.split(self._buffer)
        # The last segment has no line break after it yet.
        partial = lines.pop()

        completed: list[StreamMessage] = []
        data = ""
        fields: dict[str, Any] = {}
        last_blank = -1

        for index, line in enumerate(lines):
            if line == "":
                last_blank = index
                if data:
                    completed.append(StreamMessage(data=_decode_data(data), **fields))
                data = ""
                fields = {}
                continue

            field, sep, value = line.partition(":")
            if not sep:
                continue

            field = field.strip()
            value = value.strip()

            if field == "data":
                data = f"{data}\n{value}" if data else value
            elif field in ("event", "id"):
                fields[field] = value
            elif field == "retry":
                retry = _parse_retry(value)
                if retry is not None:
                    fields["retry"] = retry

        # Everything after the last blank line belongs to an event that is not terminated yet.
        remainder = lines[last_blank + 1:]
        remainder.append(partial)
        self._buffer = "\n".join(remainder)

        return completed


def iter_sse_events_from_text(text: str) -> Iterator[StreamMessage]:
    """
    Parse SSE events from a complete text block.

    Args:
        text: The raw string containing one or multiple SSE events.

    Yields:
        StreamMessage objects for every terminated event in the text.
    """
    parser = IncrementalEventParser()
    yield from parser.feed(text)

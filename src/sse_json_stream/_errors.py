from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class StreamError(RuntimeError):
    """Base error of the library."""


@dataclass(slots=True)
class HttpError(StreamError):
    """
    Non-success HTTP status returned by the streaming endpoint.

    ``message`` is taken from the response body when the server sent one,
    otherwise it is built from the status line.
    """
    status_code: int
    status_text: str = ""
    body: str | None = None
    message: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Request failed: {self.status_code} {self.status_text}".rstrip()

    def __str__(self) -> str:
        parts = [f"HttpError(status_code={self.status_code}"]
        if self.status_text:
            parts.append(f", status_text={self.status_text!r}")
        parts.append(f", message={self.message!r}")
        if self.body:
            parts.append(f", body={len(self.body)} chars")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Error as a dict, for structured logging."""
        return {
            "status_code": self.status_code,
            "status_text": self.status_text,
            "message": self.message,
            "body": self.body,
        }

    @property
    def is_client_error(self) -> bool:
        """True for 4xx statuses."""
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """True for 5xx statuses."""
        return 500 <= self.status_code < 600


class ProtocolError(StreamError):
    """The response cannot be read as an event stream (e.g. it has no body)."""


class TransportError(StreamError):
    """Network-level failure while sending the request or reading the body."""


class StreamStateError(StreamError):
    """``connect`` was called while a connection is already active."""


class StreamAbortedError(StreamError):
    """The stream was closed by ``disconnect`` before it finished."""

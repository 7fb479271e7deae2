"""
Request configuration for event streams.

``StreamRequestConfig`` describes the request once; its ``url``, ``query`` and
``body`` may be callables that receive the parameters passed to ``connect`` and
are resolved into a concrete ``RequestDescriptor`` for every connection attempt.
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]

QueryParams = dict[str, Any]
JsonBody = Any


class RequestDescriptor(BaseModel):
    """
    Fully resolved request handed to the HTTP client.
    """
    model_config = ConfigDict(extra="forbid")
    url: str
    method: HttpMethod = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    query: Optional[QueryParams] = None
    body: Optional[JsonBody] = None


def _resolve(value: Any, params: Any) -> Any:
    return value(params) if callable(value) else value


class StreamRequestConfig(BaseModel):
    """
    Request template for an ``EventStream``.

    Example:
        >>> config = StreamRequestConfig(
        ...     url=lambda p: f"/chats/{p['chat_id']}/stream",
        ...     method="POST",
        ...     body=lambda p: {"prompt": p["prompt"]},
        ... )
        >>> config.resolve({"chat_id": 7, "prompt": "hi"}).url
        '/chats/7/stream'
    """
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)
    url: Union[str, Callable[[Any], str]]
    method: HttpMethod = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    query: Optional[Union[QueryParams, Callable[[Any], Optional[QueryParams]]]] = None
    body: Optional[Union[JsonBody, Callable[[Any], Any]]] = None

    def resolve(self, params: Any = None) -> RequestDescriptor:
        """
        Build the concrete request for one connection attempt.

        Args:
            params: Value passed to every callable field.

        Returns:
            A RequestDescriptor with all callables evaluated.
        """
        return RequestDescriptor(
            url=_resolve(self.url, params),
            method=self.method,
            headers=dict(self.headers),
            query=_resolve(self.query, params),
            body=_resolve(self.body, params),
        )

from __future__ import annotations

import contextlib
import json
import logging
from typing import Any, AsyncIterator, Callable

import httpx

from sse_json_stream._config import HttpConfig
from sse_json_stream._errors import HttpError, ProtocolError, TransportError
from sse_json_stream.request import RequestDescriptor

EVENT_STREAM = "text/event-stream"

# Status codes whose responses never carry a body.
_NO_BODY_STATUSES = {204, 205}


def _redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    out = dict(headers)
    for k in ("authorization", "Authorization"):
        if k in out:
            out[k] = "Bearer ***REDACTED***"
    return out


def _parse_error_response(status_code: int, status_text: str, body_text: str) -> HttpError:
    """
    Build an HttpError from a failed response.

    The message comes from the body: a JSON ``{"error": {"message": ...}}`` or
    ``{"message": ...}`` envelope, otherwise the raw text. An empty body falls
    back to the status line.
    """
    message = ""
    text = body_text.strip()

    if text:
        message = text
        try:
            data = json.loads(text)
        except ValueError:
            data = None

        if isinstance(data, dict):
            error_obj = data.get("error")
            msg = error_obj.get("message") if isinstance(error_obj, dict) else data.get("message")
            if isinstance(msg, str) and msg.strip():
                message = msg.strip()

    return HttpError(
        status_code=status_code,
        status_text=status_text,
        body=body_text or None,
        message=message,
    )


def has_body(response: httpx.Response) -> bool:
    if response.request.method == "HEAD":
        return False
    return response.status_code not in _NO_BODY_STATUSES


class StreamHttpClient:
    """
    Thin async HTTPX wrapper that opens event-stream responses:
    - query string with repeated keys for list values
    - JSON body for every method but GET
    - status checking with structured HttpError
    - optional debug logging
    """

    def __init__(self, *, config: HttpConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config

        async def _log_request(request: httpx.Request) -> None:
            if not self._config.debug:
                return
            logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
            logging.warning("HTTPX REQUEST headers=%s", _redact_headers(dict(request.headers)))
            if request.content:
                try:
                    logging.warning("HTTPX REQUEST body=%s", request.content.decode("utf-8", "ignore"))
                except Exception:
                    logging.warning("HTTPX REQUEST body=(binary) len=%s", len(request.content))

        async def _log_response(response: httpx.Response) -> None:
            if not self._config.debug:
                return
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))
            if EVENT_STREAM in response.headers.get("content-type", ""):
                logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")

        EventHooksDict = dict[str, list[Callable[..., Any]]]
        hooks: EventHooksDict = {"request": [_log_request], "response": [_log_response]}

        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_s),
            event_hooks=hooks,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def config(self) -> HttpConfig:
        return self._config

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": EVENT_STREAM}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        if descriptor.method != "GET" and descriptor.body is not None:
            headers["Content-Type"] = "application/json"
        # Caller headers win over the defaults.
        headers.update(descriptor.headers)
        return headers

    def build_request(self, descriptor: RequestDescriptor) -> httpx.Request:
        kwargs: dict[str, Any] = {"headers": self._headers(descriptor)}
        if descriptor.query is not None:
            # httpx repeats the key for list values: ?tag=a&tag=b
            kwargs["params"] = descriptor.query
        if descriptor.method != "GET" and descriptor.body is not None:
            kwargs["json"] = descriptor.body
        return self._client.build_request(descriptor.method, descriptor.url, **kwargs)

    @staticmethod
    async def raise_for_status(resp: httpx.Response) -> None:
        """Check the status and raise a structured HttpError for non-2xx responses."""
        if 200 <= resp.status_code < 300:
            return

        body_text = ""
        try:
            await resp.aread()
            body_text = resp.text
        except httpx.HTTPError:
            body_text = ""

        raise _parse_error_response(resp.status_code, resp.reason_phrase, body_text)

    @contextlib.asynccontextmanager
    async def open_stream(self, descriptor: RequestDescriptor) -> AsyncIterator[httpx.Response]:
        """
        Send the request and yield the streaming response once its status is verified.

        Usage:
            async with client.open_stream(descriptor) as resp:
                async for text in resp.aiter_text():
                    ...

        Raises:
            HttpError: The server answered with a non-2xx status.
            ProtocolError: The response has no body to read events from.
            TransportError: The request or the body read failed at the network level.
        """
        request = self.build_request(descriptor)
        try:
            resp = await self._client.send(request, stream=True)
        except httpx.TransportError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        try:
            await self.raise_for_status(resp)
            if not has_body(resp):
                raise ProtocolError("No response body.")
            try:
                yield resp
            except httpx.TransportError as e:
                raise TransportError(f"{type(e).__name__}: {e}") from e
        finally:
            await resp.aclose()

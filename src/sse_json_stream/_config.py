"""
This module manages HTTP configuration for streaming connections.
It handles retrieval of the base URL, timeout, API key and debug flag from
environment variables or direct input.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_BASE_URL = "SSE_STREAM_BASE_URL"
ENV_TIMEOUT_S = "SSE_STREAM_TIMEOUT_S"
ENV_API_KEY = "SSE_STREAM_API_KEY"
ENV_HTTP_DEBUG = "SSE_STREAM_HTTP_DEBUG"

DEFAULT_TIMEOUT_S = 120.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class HttpConfig:
    """
    Configuration container for the HTTP client that opens event streams.

    ``base_url`` is joined with relative request URLs; ``api_key``, when set,
    is sent as a bearer token.
    """

    base_url: str = ""
    timeout_s: float = DEFAULT_TIMEOUT_S
    api_key: str | None = None
    debug: bool = False

    @staticmethod
    def from_env(
        *,
        base_url: str | None = None,
        timeout_s: float | None = None,
        api_key: str | None = None,
        debug: bool | None = None,
    ) -> HttpConfig:
        """
        Create an HttpConfig from the provided values, falling back to environment variables.

        Args:
            base_url: Optional base URL for relative request URLs.
            timeout_s: Optional request timeout in seconds.
            api_key: Optional bearer token.
            debug: Optional flag enabling request/response logging.

        Returns:
            An initialized HttpConfig instance.

        Raises:
            ValueError: If the timeout is not a positive number.
        """
        if timeout_s is None:
            raw = os.getenv(ENV_TIMEOUT_S)
            try:
                timeout_s = float(raw) if raw else DEFAULT_TIMEOUT_S
            except ValueError:
                raise ValueError(f"{ENV_TIMEOUT_S} must be a number, got {raw!r}") from None

        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s!r}")

        if debug is None:
            debug = os.getenv(ENV_HTTP_DEBUG, "").lower() in _TRUTHY

        return HttpConfig(
            base_url=base_url if base_url is not None else os.getenv(ENV_BASE_URL, ""),
            timeout_s=timeout_s,
            api_key=api_key or os.getenv(ENV_API_KEY) or None,
            debug=debug,
        )

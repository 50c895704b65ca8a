"""httpx-backed transport for enrichment requests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, MutableMapping

import httpx

from rest_enrich.config import Settings, get_settings
from rest_enrich.errors import TransportError
from rest_enrich.logging import get_logger

_LOGGER = get_logger(__name__).bind(component="http_executor")


class HttpExecutor:
    """Thin wrapper around httpx that sends one request and returns the raw reply.

    The executor only moves bytes: callers serialise bodies beforehand, and any
    failure to obtain a response surfaces as :class:`TransportError`. Timeouts
    belong to the executor's client, not to the callers.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._default_headers = dict(default_headers or {})
        if "User-Agent" not in self._default_headers:
            self._default_headers["User-Agent"] = self.settings.user_agent
        self._logger = _LOGGER

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator["HttpExecutor"]:
        """Ensure an AsyncClient is available for the duration of the context."""

        if self._client is not None:
            yield self
            return

        timeout = httpx.Timeout(self.settings.request_timeout_seconds)
        async with httpx.AsyncClient(timeout=timeout) as client:
            self._client = client
            try:
                yield self
            finally:
                self._client = None

    async def execute(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        body: str | bytes | Mapping[str, Any] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> tuple[int, bytes]:
        """Send the request and return ``(status_code, body_bytes)``.

        A ``str``/``bytes`` body is sent verbatim; a mapping is form-encoded.
        """

        if self._client is None:
            raise RuntimeError("HttpExecutor.lifecycle must be entered before executing requests")

        merged_headers: MutableMapping[str, str | bytes] = dict(self._default_headers)
        if headers:
            merged_headers |= {str(key): _header_value(value) for key, value in headers.items()}

        content = body if isinstance(body, (str, bytes)) else None
        data = dict(body) if isinstance(body, Mapping) else None

        self._logger.debug(
            "http_request",
            method=method.upper(),
            url=url,
            has_body=body is not None,
            params_present=bool(params),
        )

        try:
            response = await self._client.request(
                method.upper(),
                url,
                headers=merged_headers,
                params=_query_params(params),
                content=content,
                data=data,
                auth=auth,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.warning("http_transport_error", method=method.upper(), url=url, error=str(exc))
            raise TransportError(str(exc) or exc.__class__.__name__, url=url) from exc
        except (ValueError, TypeError) as exc:
            # httpx rejects the request while building it, before anything is sent
            self._logger.warning("http_request_invalid", method=method.upper(), url=url, error=str(exc))
            raise TransportError(f"invalid request: {exc}", url=url) from exc

        return response.status_code, response.content


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _header_value(value: Any) -> str | bytes:
    text = _as_text(value)
    # httpx encodes str header values as ASCII
    return text if text.isascii() else text.encode("utf-8")


def _query_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    query: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            query[key] = [_as_text(item) for item in value]
        elif value is None:
            query[key] = ""
        else:
            query[key] = _as_text(value)
    return query

"""Request templates built once from filter configuration."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any, Mapping

from rest_enrich.errors import ConfigurationError
from rest_enrich.values import deep_freeze

SUPPORTED_METHODS = ("get", "post")
_REQUEST_KEYS = frozenset({"method", "url", "headers", "params", "body", "auth"})


@dataclass(frozen=True, slots=True)
class BasicAuth:
    user: str
    password: str

    def as_tuple(self) -> tuple[str, str]:
        return self.user, self.password


@dataclass(frozen=True, slots=True)
class RequestTemplate:
    """Immutable request definition shared by every record.

    ``headers``, ``params`` and ``body`` are deep-frozen value trees. A request
    realised for one record has the same shape (see
    :func:`rest_enrich.adapters.interpolation.materialize`).
    """

    method: str
    url: str
    headers: Mapping[str, Any] | None = None
    params: Mapping[str, Any] | None = None
    body: Any | None = None
    auth: BasicAuth | None = None

    @classmethod
    def from_config(cls, raw: str | Mapping[str, Any]) -> "RequestTemplate":
        return normalize_request(raw)

    @classmethod
    def from_path(cls, path: str | Path) -> "RequestTemplate":
        template_path = Path(path)
        try:
            content = json.loads(template_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{template_path}: request template is not valid JSON: {exc}") from exc
        return normalize_request(content)


# Each record gets its own RuntimeRequest instance unless nothing needs substituting.
RuntimeRequest = RequestTemplate


def normalize_request(raw: str | Mapping[str, Any]) -> RequestTemplate:
    """Turn a bare URL or a structured request mapping into a template."""

    if isinstance(raw, str):
        return RequestTemplate(method="get", url=_require_url(raw))

    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"request must be a URL string or a mapping, got {type(raw).__name__}")

    unknown = sorted(set(raw) - _REQUEST_KEYS)
    if unknown:
        raise ConfigurationError(f"unknown request option(s): {', '.join(map(str, unknown))}")

    if "url" not in raw:
        raise ConfigurationError("request.url is required")
    url = _require_url(raw["url"])

    method = raw.get("method") or "get"
    if not isinstance(method, str) or method.lower() not in SUPPORTED_METHODS:
        raise ConfigurationError(
            f"unsupported request.method {method!r}; expected one of {', '.join(SUPPORTED_METHODS)}"
        )
    method = method.lower()

    headers = _optional_mapping(raw, "headers")
    params = _optional_mapping(raw, "params")
    body = raw.get("body")

    if method == "post" and params is not None and body is None:
        body, params = params, None

    return RequestTemplate(
        method=method,
        url=url,
        headers=deep_freeze(headers) if headers is not None else None,
        params=deep_freeze(params) if params is not None else None,
        body=deep_freeze(body),
        auth=_normalize_auth(raw.get("auth")),
    )


def _require_url(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError("request.url must be a non-empty string")
    return url.strip()


def _optional_mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"request.{key} must be a mapping, got {type(value).__name__}")
    return value


def _normalize_auth(auth: Any) -> BasicAuth | None:
    if auth is None:
        return None
    if not isinstance(auth, Mapping):
        raise ConfigurationError("request.auth must be a mapping with 'user' and 'password'")

    user = auth.get("user")
    password = auth.get("password")
    if not user:
        raise ConfigurationError("request.auth.user must be set when request.auth is configured")
    if not password:
        raise ConfigurationError("request.auth.password must be set when request.auth is configured")
    return BasicAuth(user=str(user), password=str(password))

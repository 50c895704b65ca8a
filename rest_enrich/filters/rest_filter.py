"""The REST enrichment filter: template in, enriched record out."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rest_enrich.adapters.interpolation import (
    InterpolationIndex,
    MissingFieldPolicy,
    build_index,
    materialize,
)
from rest_enrich.adapters.request_template import RequestTemplate, RuntimeRequest, normalize_request
from rest_enrich.codec import serialize_json
from rest_enrich.errors import ConfigurationError, TransportError
from rest_enrich.filters.response_mapper import (
    DEFAULT_JSON_FAILURE_TAGS,
    DEFAULT_REST_FAILURE_TAGS,
    ResponseMapper,
    ResponseOutcome,
)
from rest_enrich.logging import get_logger
from rest_enrich.records import Event
from rest_enrich.values import thaw


class RequestExecutor(Protocol):
    async def execute(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        body: str | bytes | Mapping[str, Any] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> tuple[int, bytes]:  # pragma: no cover - interface only
        ...


class RestFilterConfig(BaseModel):
    """Options accepted by :class:`RestFilter`."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    request: str | dict[str, Any]
    json_mode: bool = Field(default=False, alias="json")
    sprintf: bool = False
    target: str = "rest"
    fallback: Any = None
    tag_on_rest_failure: list[str] = Field(default_factory=lambda: list(DEFAULT_REST_FAILURE_TAGS))
    tag_on_json_failure: list[str] = Field(default_factory=lambda: list(DEFAULT_JSON_FAILURE_TAGS))
    missing_field: MissingFieldPolicy = "empty"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "RestFilterConfig":
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            raise ConfigurationError(f"invalid rest filter configuration: {exc}") from exc

    @classmethod
    def from_path(cls, path: str | Path) -> "RestFilterConfig":
        try:
            content = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path}: filter configuration is not valid JSON: {exc}") from exc
        if not isinstance(content, Mapping):
            raise ConfigurationError(f"{path}: filter configuration must be a JSON object")
        return cls.from_mapping(content)


class RestFilter:
    """Enrich records with the result of one templated HTTP call each.

    Template, interpolation index and mapper are built once here; every
    configuration problem is raised from the constructor.
    """

    def __init__(self, config: RestFilterConfig | Mapping[str, Any], *, executor: RequestExecutor) -> None:
        if not isinstance(config, RestFilterConfig):
            config = RestFilterConfig.from_mapping(config)
        self.config = config
        self.executor = executor
        self.template: RequestTemplate = normalize_request(config.request)
        self.index: InterpolationIndex = build_index(self.template) if config.sprintf else InterpolationIndex()
        self.mapper = ResponseMapper(
            target=config.target,
            fallback=config.fallback,
            tag_on_rest_failure=config.tag_on_rest_failure,
            tag_on_json_failure=config.tag_on_json_failure,
        )
        self._logger = get_logger(__name__).bind(component="rest_filter", url=self.template.url)
        self._logger.info(
            "rest_filter_ready",
            method=self.template.method,
            json=config.json_mode,
            interpolated_leaves=len(self.index),
            target=str(self.mapper.target),
        )

    def build_request(self, event: Event) -> RuntimeRequest:
        return materialize(self.template, self.index, event, missing=self.config.missing_field)

    async def filter(self, event: Event) -> Event:
        """Make exactly one request for ``event`` and merge the outcome into it."""

        request = self.build_request(event)
        headers, body = self._encode_body(request)

        try:
            status_code, raw_body = await self.executor.execute(
                request.method,
                request.url,
                headers=headers,
                params=thaw(request.params) if request.params is not None else None,
                body=body,
                auth=request.auth.as_tuple() if request.auth is not None else None,
            )
        except TransportError as exc:
            outcome = ResponseOutcome.transport_error(exc.message)
        else:
            outcome = ResponseOutcome.classify(status_code, raw_body, json_mode=self.config.json_mode)

        self._logger.debug(
            "rest_response",
            method=request.method,
            url=request.url,
            status_code=outcome.status_code,
            classification=outcome.classification.value,
        )
        return self.mapper.apply(event, outcome)

    def _encode_body(self, request: RuntimeRequest) -> tuple[dict[str, Any] | None, Any]:
        headers = thaw(request.headers) if request.headers is not None else None
        if request.body is None:
            return headers, None

        if not self.config.json_mode:
            if isinstance(request.body, str):
                return headers, request.body
            if isinstance(request.body, Mapping) and _is_flat(request.body):
                return headers, thaw(request.body)

        headers = headers or {}
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = "application/json"
        return headers, serialize_json(request.body)


def _is_flat(body: Mapping[str, Any]) -> bool:
    return not any(isinstance(value, (Mapping, list, tuple)) for value in body.values())

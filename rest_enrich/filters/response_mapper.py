"""Classify HTTP outcomes and merge them into records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from rest_enrich.codec import parse_json
from rest_enrich.errors import ConfigurationError
from rest_enrich.logging import get_logger
from rest_enrich.records import Event, FieldPath
from rest_enrich.values import deep_freeze, is_empty, thaw

DEFAULT_REST_FAILURE_TAGS = ("_restfailure",)
DEFAULT_JSON_FAILURE_TAGS = ("_jsonparsefailure",)

_BODY_EXCERPT = 512


class Classification(str, Enum):
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    EMPTY_SUCCESS = "empty_success"

    @property
    def is_failure(self) -> bool:
        return self is not Classification.SUCCESS

    @property
    def is_rest_failure(self) -> bool:
        return self in (Classification.HTTP_ERROR, Classification.TRANSPORT_ERROR)


@dataclass(frozen=True, slots=True)
class ResponseOutcome:
    """What came back for one record's request."""

    status_code: int | None
    raw_body: bytes
    classification: Classification
    parsed_value: Any = None
    error: str | None = None

    @classmethod
    def classify(cls, status_code: int, raw_body: bytes, *, json_mode: bool) -> "ResponseOutcome":
        if not 200 <= status_code < 300:
            return cls(status_code, raw_body, Classification.HTTP_ERROR, error=f"HTTP {status_code}")

        if not json_mode:
            text = raw_body.decode("utf-8", errors="replace").strip()
            return cls(status_code, raw_body, Classification.SUCCESS, parsed_value=text)

        result = parse_json(raw_body)
        if not result.ok:
            return cls(status_code, raw_body, Classification.PARSE_ERROR, error=result.error)
        if is_empty(result.value):
            return cls(status_code, raw_body, Classification.EMPTY_SUCCESS, parsed_value=result.value)
        return cls(status_code, raw_body, Classification.SUCCESS, parsed_value=result.value)

    @classmethod
    def transport_error(cls, message: str) -> "ResponseOutcome":
        return cls(None, b"", Classification.TRANSPORT_ERROR, error=message)


class ResponseMapper:
    """Merge a :class:`ResponseOutcome` into an :class:`Event`.

    Successful values are written at ``target``. Failures write the fallback
    when one is configured; otherwise the record is tagged and ``target`` is
    left alone.
    """

    def __init__(
        self,
        *,
        target: str | FieldPath,
        fallback: Any = None,
        tag_on_rest_failure: Sequence[str] = DEFAULT_REST_FAILURE_TAGS,
        tag_on_json_failure: Sequence[str] = DEFAULT_JSON_FAILURE_TAGS,
    ) -> None:
        if isinstance(target, str) and not target.strip():
            raise ConfigurationError("target must not be blank")
        self.target = target if isinstance(target, FieldPath) else FieldPath.parse(target)
        self.fallback = None if is_empty(fallback) else deep_freeze(fallback)
        self.tag_on_rest_failure = tuple(tag_on_rest_failure)
        self.tag_on_json_failure = tuple(tag_on_json_failure)
        self._logger = get_logger(__name__).bind(component="response_mapper", target=str(self.target))

    def apply(self, event: Event, outcome: ResponseOutcome) -> Event:
        if not outcome.classification.is_failure:
            event.set(self.target, outcome.parsed_value)
            return event

        self._logger.warning(
            "rest_request_failed",
            classification=outcome.classification.value,
            status_code=outcome.status_code,
            error=outcome.error,
            body=outcome.raw_body[:_BODY_EXCERPT].decode("utf-8", errors="replace"),
            fallback=self.fallback is not None,
        )

        if self.fallback is not None:
            event.set(self.target, thaw(self.fallback))
            return event

        tags = self.tag_on_rest_failure if outcome.classification.is_rest_failure else self.tag_on_json_failure
        for tag in tags:
            event.tag(tag)
        return event

from __future__ import annotations

import pytest

from rest_enrich.adapters.interpolation import build_index, materialize, sprintf
from rest_enrich.adapters.request_template import normalize_request
from rest_enrich.errors import ConfigurationError
from rest_enrich.records import Event


NESTED_REQUEST = {
    "url": "https://example.com/posts",
    "method": "post",
    "headers": {"Content-Type": "application/json", "X-Trace": "%{trace}"},
    "body": {
        "key1": [{"filterType": "text", "text": "salmon", "boolean": False}, {"filterType": "unique"}],
        "key2": [{"message": "123%{message}", "boolean": True}],
        "key3": [
            {"text": "%{message}123", "filterType": "text", "number": 44},
            {"filterType": "unique", "null": None},
        ],
        "userId": "%{message}",
    },
}


@pytest.fixture()
def nested_template():
    return normalize_request(NESTED_REQUEST)


def test_index_lists_every_placeholder_leaf(nested_template) -> None:
    index = build_index(nested_template)

    assert index.paths == (
        ("headers", "X-Trace"),
        ("body", "key2", 0, "message"),
        ("body", "key3", 0, "text"),
        ("body", "userId"),
    )
    assert index.shape == {
        "headers": {"X-Trace": True},
        "body": {"key2": {0: {"message": True}}, "key3": {0: {"text": True}}, "userId": True},
    }


def test_index_is_empty_without_placeholders() -> None:
    template = normalize_request({"url": "http://host/users/10", "headers": {"Accept": "application/json"}})

    index = build_index(template)

    assert index.is_empty
    assert len(index) == 0


def test_index_counts_leaves_not_occurrences() -> None:
    template = normalize_request({"url": "http://host/%{a}/%{b}", "params": {"q": "%{a}", "n": 1}})

    assert build_index(template).paths == (("url",), ("params", "q"))


def test_index_rejects_malformed_reference() -> None:
    template = normalize_request("http://host/%{[broken}")

    with pytest.raises(ConfigurationError):
        build_index(template)


def test_materialize_reuses_template_when_index_empty() -> None:
    template = normalize_request({"url": "http://host/users/10", "method": "post", "body": {"a": [1, 2]}})
    index = build_index(template)

    request = materialize(template, index, Event({"uid": "9"}))

    assert request is template


def test_materialize_substitutes_url_and_keeps_template() -> None:
    template = normalize_request({"url": "http://host/users/%{uid}", "method": "GET"})
    index = build_index(template)

    first = materialize(template, index, Event({"uid": "9"}))
    second = materialize(template, index, Event({"uid": 10}))

    assert first.url == "http://host/users/9"
    assert second.url == "http://host/users/10"
    assert template.url == "http://host/users/%{uid}"


def test_materialize_only_touches_indexed_leaves(nested_template) -> None:
    index = build_index(nested_template)

    request = materialize(nested_template, index, Event({"message": 42, "trace": "abc"}))

    assert request.headers == {"Content-Type": "application/json", "X-Trace": "abc"}
    assert request.body["userId"] == "42"
    assert request.body["key2"][0] == {"message": "12342", "boolean": True}
    assert request.body["key3"][0] == {"text": "42123", "filterType": "text", "number": 44}
    assert request.body["key3"][1] == {"filterType": "unique", "null": None}
    # subtrees without placeholders are shared, not copied
    assert request.body["key1"] is nested_template.body["key1"]
    assert request.body["key3"][1] is nested_template.body["key3"][1]
    assert nested_template == normalize_request(NESTED_REQUEST)


def test_missing_field_expands_to_empty_string() -> None:
    template = normalize_request("http://host/users/%{uid}")

    request = materialize(template, build_index(template), Event({"other": 1}))

    assert request.url == "http://host/users/"


def test_missing_field_can_be_kept_verbatim() -> None:
    template = normalize_request("http://host/users/%{uid}")

    request = materialize(template, build_index(template), Event(), missing="keep")

    assert request.url == "http://host/users/%{uid}"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("text", "text"),
        (42, "42"),
        (1.5, "1.5"),
        (True, "true"),
        (None, ""),
        ({"a": [1, 2]}, '{"a":[1,2]}'),
    ],
)
def test_sprintf_always_yields_strings(value, expected: str) -> None:
    assert sprintf("%{field}", Event({"field": value})) == expected


def test_sprintf_resolves_nested_references() -> None:
    event = Event({"user": {"id": 7, "names": ["ann", "bo"]}})

    assert sprintf("/u/%{[user][id]}/%{[user][names][1]}", event) == "/u/7/bo"

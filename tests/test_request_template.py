from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType

import pytest

from rest_enrich.adapters.request_template import BasicAuth, RequestTemplate, normalize_request
from rest_enrich.errors import ConfigurationError


@pytest.fixture()
def template_file(tmp_path: Path) -> Path:
    content = {
        "method": "POST",
        "url": "https://example.com/users/%{uid}",
        "headers": {"Authorization": "Bearer %{token}"},
        "params": {"count": 25, "tags": ["a", "b"]},
        "auth": {"user": "svc", "password": "secret"},
    }
    path = tmp_path / "template.json"
    path.write_text(json.dumps(content), encoding="utf-8")
    return path


def test_bare_url_normalizes_to_get() -> None:
    template = normalize_request("http://host/users/10")

    assert template == RequestTemplate(method="get", url="http://host/users/10")
    assert template.headers is None
    assert template.body is None
    assert template.auth is None


def test_template_loads_from_path(template_file: Path) -> None:
    template = RequestTemplate.from_path(template_file)

    assert template.method == "post"
    assert template.url == "https://example.com/users/%{uid}"
    assert template.headers == {"Authorization": "Bearer %{token}"}
    # POST params without a body become the body
    assert template.params is None
    assert template.body == {"count": 25, "tags": ("a", "b")}
    assert template.auth == BasicAuth(user="svc", password="secret")


def test_get_keeps_params_as_query() -> None:
    template = normalize_request({"url": "http://host/posts", "params": {"userId": 10}})

    assert template.method == "get"
    assert template.params == {"userId": 10}
    assert template.body is None


def test_post_with_explicit_body_keeps_params() -> None:
    template = normalize_request(
        {"url": "http://host/posts", "method": "post", "params": {"q": "x"}, "body": {"title": "foo"}}
    )

    assert template.params == {"q": "x"}
    assert template.body == {"title": "foo"}


def test_method_is_case_insensitive() -> None:
    assert normalize_request({"url": "http://host", "method": "GeT"}).method == "get"


def test_template_trees_are_frozen() -> None:
    template = normalize_request({"url": "http://host", "method": "post", "body": {"nested": {"list": [1]}}})

    assert isinstance(template.body, MappingProxyType)
    assert template.body["nested"]["list"] == (1,)
    with pytest.raises(TypeError):
        template.body["new"] = 1  # type: ignore[index]


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"method": "get"}, "url is required"),
        ({"url": ""}, "non-empty"),
        ({"url": "http://host", "method": "delete"}, "unsupported request.method"),
        ({"url": "http://host", "auth": {"password": "p"}}, "auth.user"),
        ({"url": "http://host", "auth": {"user": "u"}}, "auth.password"),
        ({"url": "http://host", "headers": "nope"}, "headers must be a mapping"),
        ({"url": "http://host", "verb": "get"}, "unknown request option"),
        (42, "URL string or a mapping"),
    ],
)
def test_invalid_request_configuration(raw, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        normalize_request(raw)


def test_malformed_template_file_is_a_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "template.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="not valid JSON"):
        RequestTemplate.from_path(path)

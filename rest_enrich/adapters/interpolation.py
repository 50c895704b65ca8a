"""Per-record ``%{field}`` substitution for request templates.

The template is scanned once by :func:`build_index`, which records where
placeholders occur. :func:`materialize` then only rebuilds the containers on
those paths for each record; everything else is shared with the frozen
template.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Literal, Mapping

from rest_enrich.adapters.request_template import RequestTemplate, RuntimeRequest
from rest_enrich.records import Event, FieldPath
from rest_enrich.values import deep_freeze, prune_empty, thaw

PLACEHOLDER_PATTERN = re.compile(r"%\{([^{}]+)\}")

INTERPOLATED_SECTIONS = ("url", "headers", "params", "body")

MissingFieldPolicy = Literal["empty", "keep"]

LeafPath = tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class InterpolationIndex:
    """Where placeholders live in a template.

    ``shape`` mirrors the template, pruned down to qualifying leaves (marked
    ``True``); list positions are keyed by their integer index. ``paths`` lists
    the same leaves in template order, each starting with the section name.
    """

    shape: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    paths: tuple[LeafPath, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.paths

    def __len__(self) -> int:
        return len(self.paths)


def has_placeholder(value: Any) -> bool:
    return isinstance(value, str) and PLACEHOLDER_PATTERN.search(value) is not None


def build_index(template: RequestTemplate) -> InterpolationIndex:
    """Scan ``template`` once for leaf strings holding ``%{...}`` references.

    Every reference is parsed here, so a malformed one fails at startup.
    """

    marks = {section: _mark(getattr(template, section)) for section in INTERPOLATED_SECTIONS}
    shape = prune_empty(marks) or {}

    paths = tuple(_flatten(shape, ()))
    for path in paths:
        leaf = _resolve(template, path)
        for reference in PLACEHOLDER_PATTERN.findall(leaf):
            FieldPath.parse(reference)

    return InterpolationIndex(shape=deep_freeze(shape), paths=paths)


def _mark(tree: Any) -> Any:
    if isinstance(tree, Mapping):
        return {key: _mark(value) for key, value in tree.items()}
    if isinstance(tree, (list, tuple)):
        return {position: _mark(value) for position, value in enumerate(tree)}
    return True if has_placeholder(tree) else None


def _flatten(shape: Any, prefix: LeafPath):
    if shape is True:
        yield prefix
        return
    for key, child in shape.items():
        yield from _flatten(child, prefix + (key,))


def _resolve(template: RequestTemplate, path: LeafPath) -> Any:
    section, *keys = path
    node = getattr(template, section)
    for key in keys:
        node = node[key]
    return node


def materialize(
    template: RequestTemplate,
    index: InterpolationIndex,
    event: Event,
    *,
    missing: MissingFieldPolicy = "empty",
) -> RuntimeRequest:
    """Realise ``template`` for one record.

    With an empty index the template itself is returned; callers must treat
    the result as read-only either way.
    """

    if index.is_empty:
        return template

    changes = {
        section: _substitute(getattr(template, section), shape, event, missing)
        for section, shape in index.shape.items()
    }
    return replace(template, **changes)


def _substitute(tree: Any, shape: Any, event: Event, missing: MissingFieldPolicy) -> Any:
    if shape is True:
        return sprintf(tree, event, missing=missing)

    if isinstance(tree, Mapping):
        copied = dict(tree)
        for key, child_shape in shape.items():
            copied[key] = _substitute(tree[key], child_shape, event, missing)
        return MappingProxyType(copied)

    items = list(tree)
    for position, child_shape in shape.items():
        items[position] = _substitute(tree[position], child_shape, event, missing)
    return tuple(items)


def sprintf(text: str, event: Event, *, missing: MissingFieldPolicy = "empty") -> str:
    """Expand every ``%{field}`` in ``text`` with the record's current values.

    Absent (or null) fields expand to ``""``, or stay verbatim with
    ``missing="keep"``. The result is always a string.
    """

    def _replace(match: re.Match[str]) -> str:
        found, value = event.lookup(FieldPath.parse(match.group(1)))
        if not found or value is None:
            return "" if missing == "empty" else match.group(0)
        return stringify(value)

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(thaw(value), separators=(",", ":"), ensure_ascii=False)

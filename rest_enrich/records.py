"""Pipeline records and field references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, Mapping

from rest_enrich.errors import ConfigurationError

_BRACKET_SEGMENT = re.compile(r"\[([^\[\]]+)\]")

TAGS_FIELD = "tags"


@dataclass(frozen=True, slots=True)
class FieldPath:
    """A non-empty path into a record, e.g. ``[user][address][0]``."""

    parts: tuple[str, ...]

    @classmethod
    def parse(cls, reference: str) -> "FieldPath":
        return _parse_reference(reference)

    def __iter__(self) -> Iterator[str]:
        return iter(self.parts)

    def __str__(self) -> str:
        return "".join(f"[{part}]" for part in self.parts)


@lru_cache(maxsize=1024)
def _parse_reference(reference: str) -> FieldPath:
    if not isinstance(reference, str):
        raise ConfigurationError(f"field reference must be a string, got {type(reference).__name__}")

    ref = reference.strip()
    if not ref:
        raise ConfigurationError("field reference must not be blank")

    if not ref.startswith("["):
        if "[" in ref or "]" in ref:
            raise ConfigurationError(f"malformed field reference: {reference!r}")
        return FieldPath((ref,))

    parts = _BRACKET_SEGMENT.findall(ref)
    if not parts or "".join(f"[{part}]" for part in parts) != ref:
        raise ConfigurationError(f"malformed field reference: {reference!r}")

    parts = [part.strip() for part in parts]
    if not all(parts):
        raise ConfigurationError(f"field reference has a blank segment: {reference!r}")
    return FieldPath(tuple(parts))


def _as_path(path: FieldPath | str) -> FieldPath:
    return path if isinstance(path, FieldPath) else FieldPath.parse(path)


def _child(container: Any, key: str) -> tuple[bool, Any]:
    if isinstance(container, Mapping):
        if key in container:
            return True, container[key]
        return False, None

    if isinstance(container, list) and key.lstrip("-").isdigit():
        index = int(key)
        if -len(container) <= index < len(container):
            return True, container[index]

    return False, None


class Event:
    """A single pipeline record, mutated in place by enrichment stages."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def get(self, path: FieldPath | str, default: Any = None) -> Any:
        found, value = self.lookup(path)
        return value if found else default

    def lookup(self, path: FieldPath | str) -> tuple[bool, Any]:
        """Return ``(found, value)`` so a stored ``None`` can be told from absence."""

        current: Any = self._data
        for key in _as_path(path):
            found, current = _child(current, key)
            if not found:
                return False, None
        return True, current

    def includes(self, path: FieldPath | str) -> bool:
        return self.lookup(path)[0]

    def set(self, path: FieldPath | str, value: Any) -> None:
        """Write ``value`` at ``path``, replacing whatever was there.

        Missing or non-container intermediate segments are replaced by mappings.
        """

        parts = _as_path(path).parts
        current: Any = self._data
        for key, next_key in zip(parts, parts[1:]):
            found, child = _child(current, key)
            if not found or not _accepts(child, next_key):
                child = {}
                _assign(current, key, child)
            current = child
        _assign(current, parts[-1], value)

    def tag(self, name: str) -> None:
        """Append ``name`` to the record's tags unless already present."""

        tags = self._data.get(TAGS_FIELD)
        if tags is None:
            tags = []
        elif not isinstance(tags, list):
            tags = [tags]
        if name not in tags:
            tags.append(name)
        self._data[TAGS_FIELD] = tags

    @property
    def tags(self) -> list[str]:
        tags = self._data.get(TAGS_FIELD) or []
        return list(tags) if isinstance(tags, list) else [tags]

    def to_dict(self) -> dict[str, Any]:
        return self._data

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"Event({self._data!r})"


def _accepts(container: Any, key: str) -> bool:
    if isinstance(container, dict):
        return True
    if isinstance(container, list) and key.lstrip("-").isdigit():
        return -len(container) <= int(key) <= len(container)
    return False


def _assign(container: Any, key: str, value: Any) -> None:
    if isinstance(container, list):
        index = int(key) if key.lstrip("-").isdigit() else None
        if index is not None and -len(container) <= index < len(container):
            container[index] = value
            return
        if index == len(container):
            container.append(value)
            return
        raise KeyError(f"cannot set {key!r} on a list of length {len(container)}")
    container[key] = value

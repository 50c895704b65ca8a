"""Value tree helpers.

Request templates, response bodies and fallbacks are all represented as plain
JSON-shaped trees (``None``, ``bool``, numbers, ``str``, lists and mappings).
Templates are shared by every record, so they are frozen once with
:func:`deep_freeze`: mappings become read-only ``MappingProxyType`` views and
lists become tuples. :func:`thaw` turns a frozen tree back into ordinary
mutable containers before it is handed to a record or to the JSON codec.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Union

ValueTree = Union[None, bool, int, float, str, list["ValueTree"], dict[str, "ValueTree"]]

_REMOVED = object()


def deep_freeze(tree: Any) -> Any:
    """Return an immutable copy of ``tree``."""

    if isinstance(tree, Mapping):
        return MappingProxyType({key: deep_freeze(value) for key, value in tree.items()})

    if isinstance(tree, (list, tuple)):
        return tuple(deep_freeze(item) for item in tree)

    return tree


def thaw(tree: Any) -> Any:
    """Return a mutable deep copy of a (possibly frozen) tree."""

    if isinstance(tree, Mapping):
        return {key: thaw(value) for key, value in tree.items()}

    if isinstance(tree, (list, tuple)):
        return [thaw(item) for item in tree]

    return tree


def is_empty(tree: Any) -> bool:
    """True for ``None``, ``""`` and containers without entries."""

    if tree is None:
        return True
    if isinstance(tree, (str, Mapping, list, tuple)):
        return len(tree) == 0
    return False


def prune_empty(tree: Any) -> Any:
    """Drop empty leaves and containers, recursively.

    Returns ``None`` when nothing survives. ``False`` and ``0`` are values, not
    emptiness, and are kept.
    """

    pruned = _prune(tree)
    return None if pruned is _REMOVED else pruned


def _prune(tree: Any) -> Any:
    if isinstance(tree, Mapping):
        kept = {}
        for key, value in tree.items():
            value = _prune(value)
            if value is not _REMOVED:
                kept[key] = value
        return kept or _REMOVED

    if isinstance(tree, (list, tuple)):
        items = [item for item in (_prune(value) for value in tree) if item is not _REMOVED]
        return items or _REMOVED

    return _REMOVED if is_empty(tree) else tree

"""JSON encode/decode helpers that report failures as values."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from rest_enrich.values import thaw


@dataclass(frozen=True, slots=True)
class JsonResult:
    """Outcome of :func:`parse_json`: either ``value`` or ``error`` is meaningful."""

    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_json(raw: bytes | str) -> JsonResult:
    """Decode ``raw`` without raising on malformed input."""

    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        return JsonResult(value=json.loads(text))
    except UnicodeDecodeError as exc:
        return JsonResult(error=f"invalid utf-8: {exc}")
    except json.JSONDecodeError as exc:
        return JsonResult(error=str(exc))


def serialize_json(tree: Any) -> str:
    """Encode a value tree (frozen or not) as compact JSON."""

    return json.dumps(thaw(tree), separators=(",", ":"), ensure_ascii=False)

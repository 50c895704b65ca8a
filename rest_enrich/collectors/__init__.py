"""Record sources."""

from .jsonlines import JsonLinesSource

__all__ = ["JsonLinesSource"]

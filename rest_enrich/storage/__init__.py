"""Sinks for enriched records."""

from .jsonlines import JsonLinesSink

__all__ = ["JsonLinesSink"]

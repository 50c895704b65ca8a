"""Exception types shared across the enrichment stages."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised at construction time when the filter cannot be built.

    Covers a missing URL, an unsupported verb, incomplete credentials, a blank
    target and malformed field references. Never raised while processing a
    record.
    """


class TransportError(RuntimeError):
    """Raised by the HTTP executor when no response could be obtained."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url

"""REST enrichment: per-record HTTP lookups merged back into pipeline records."""

from __future__ import annotations

from .config import Settings, get_settings
from .errors import ConfigurationError, TransportError
from .filters import RestFilter, RestFilterConfig
from .pipelines import EnrichmentPipeline
from .records import Event, FieldPath
from .api.http_executor import HttpExecutor

__all__ = [
    "ConfigurationError",
    "EnrichmentPipeline",
    "Event",
    "FieldPath",
    "HttpExecutor",
    "RestFilter",
    "RestFilterConfig",
    "Settings",
    "TransportError",
    "get_settings",
]

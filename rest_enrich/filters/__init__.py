"""Enrichment filters."""

from .response_mapper import Classification, ResponseMapper, ResponseOutcome
from .rest_filter import RestFilter, RestFilterConfig

__all__ = [
	"Classification",
	"ResponseMapper",
	"ResponseOutcome",
	"RestFilter",
	"RestFilterConfig",
]

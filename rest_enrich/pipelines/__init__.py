"""Pipeline orchestration for REST enrichment."""

from .enrichment_pipeline import EnrichmentPipeline, Enricher, RecordSink, RecordSource

__all__ = [
	"EnrichmentPipeline",
	"Enricher",
	"RecordSink",
	"RecordSource",
]

"""Enrichment pipeline orchestration."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncContextManager, AsyncIterator, Mapping, Protocol, Sequence

from rest_enrich.logging import get_logger
from rest_enrich.records import Event


class RecordSource(Protocol):
    """Protocol for batch producers feeding the pipeline."""

    def lifecycle(self) -> AsyncContextManager[Any]:  # pragma: no cover - interface only
        ...

    def stream(self) -> AsyncIterator[Sequence[Mapping[str, Any]]]:  # pragma: no cover - interface only
        ...

    def stop(self) -> None:  # pragma: no cover - interface only
        ...


class Enricher(Protocol):
    async def filter(self, event: Event) -> Event:  # pragma: no cover - interface only
        ...


class RecordSink:
    """Protocol for downstream consumers of enriched records."""

    async def persist(self, events: Sequence[Event]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


class EnrichmentPipeline:
    """Glue a record source, an enricher and downstream sinks together.

    Records of one batch are enriched concurrently, bounded by
    ``max_concurrency``; batches are handed to the sinks in arrival order.
    """

    def __init__(
        self,
        *,
        source: RecordSource,
        enricher: Enricher,
        sinks: Sequence[RecordSink] | None = None,
        max_concurrency: int = 8,
        failure_tags: Sequence[str] = ("_restfailure",),
    ) -> None:
        self.source = source
        self.enricher = enricher
        self.sinks = tuple(sinks or ())
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self.failure_tags = tuple(failure_tags)
        self._logger = get_logger(__name__).bind(component="enrichment_pipeline")
        self._running = False

    async def _enrich(self, event: Event) -> Event:
        """Enrich one record; an unexpected error tags it instead of failing the batch."""

        async with self._semaphore:
            try:
                return await self.enricher.filter(event)
            except Exception as exc:
                self._logger.exception("record_enrichment_failed", error=str(exc))
                for tag in self.failure_tags:
                    event.tag(tag)
                return event

    async def _persist(self, events: Sequence[Event]) -> None:
        if not events or not self.sinks:
            return
        await asyncio.gather(*(sink.persist(events) for sink in self.sinks))

    async def process_batch(self, batch: Sequence[Mapping[str, Any]]) -> list[Event]:
        """Enrich one batch of raw records and forward it to the sinks."""

        events = [Event(raw) for raw in batch]
        if not events:
            return events

        enriched = list(await asyncio.gather(*(self._enrich(event) for event in events)))
        tagged = sum(1 for event in enriched if event.tags)
        self._logger.info("records_enriched", count=len(enriched), tagged=tagged)
        await self._persist(enriched)
        return enriched

    async def run(self, *, max_batches: int | None = None) -> None:
        """Run the pipeline until the source is exhausted or stopped."""

        self._running = True
        batches = 0
        try:
            async with self.source.lifecycle():
                async for batch in self.source.stream():
                    await self.process_batch(batch)
                    batches += 1
                    if max_batches is not None and batches >= max_batches:
                        break
        finally:
            self.source.stop()
            self._running = False
            self._logger.info("pipeline_stopped", batches=batches)

    def stop(self) -> None:
        self.source.stop()

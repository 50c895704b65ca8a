"""Newline-delimited JSON sink for enriched records."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import IO, Sequence

from rest_enrich.logging import get_logger
from rest_enrich.pipelines.enrichment_pipeline import RecordSink
from rest_enrich.records import Event


class JsonLinesSink(RecordSink):
    """Write each enriched record as one JSON line."""

    def __init__(self, path: str | Path | None = None, *, stream: IO[str] | None = None) -> None:
        self.path = Path(path) if path is not None and str(path) != "-" else None
        self._stream = stream
        self._owned: IO[str] | None = None
        self._logger = get_logger(__name__).bind(component="jsonlines_sink")

    async def open(self) -> None:
        if self.path is not None and self._owned is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._owned = self.path.open("a", encoding="utf-8")
            self._stream = self._owned
        elif self._stream is None:
            self._stream = sys.stdout

    async def close(self) -> None:
        if self._owned is not None:
            self._owned.close()
            self._owned = None
            self._stream = None
            self._logger.info("sink_closed", path=str(self.path))

    async def persist(self, events: Sequence[Event]) -> None:
        if not events:
            return
        if self._stream is None:
            await self.open()

        assert self._stream is not None
        for event in events:
            self._stream.write(json.dumps(event.to_dict(), ensure_ascii=False, default=str) + "\n")
        self._stream.flush()
        self._logger.debug("records_written", count=len(events))

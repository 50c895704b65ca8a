"""Newline-delimited JSON record source."""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import IO, Any, AsyncIterator

from rest_enrich.config import Settings, get_settings
from rest_enrich.logging import get_logger


class JsonLinesSource:
    """Read JSON objects, one per line, and yield them in batches.

    Blank lines are ignored; lines that are not JSON objects are logged and
    skipped.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        stream: IO[str] | None = None,
        settings: Settings | None = None,
        batch_size: int | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.path = Path(path) if path is not None and str(path) != "-" else None
        self._stream = stream
        self.batch_size = batch_size or self.settings.batch_size
        self._stopped = asyncio.Event()
        self._logger = get_logger(__name__).bind(component="jsonlines_source")

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator["JsonLinesSource"]:
        handle = self.path.open("r", encoding="utf-8") if self.path is not None else None
        if handle is not None:
            self._stream = handle
        elif self._stream is None:
            self._stream = sys.stdin
        self._stopped.clear()
        try:
            yield self
        finally:
            if handle is not None:
                handle.close()
                self._stream = None
            self._logger.info("source_closed", path=str(self.path) if self.path else "-")

    async def stream(self) -> AsyncIterator[list[dict[str, Any]]]:
        if self._stream is None:
            raise RuntimeError("JsonLinesSource.lifecycle must be entered before streaming")

        batch: list[dict[str, Any]] = []
        for line_number, line in enumerate(self._stream, start=1):
            if self._stopped.is_set():
                break
            record = self._decode(line, line_number)
            if record is None:
                continue
            batch.append(record)
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch and not self._stopped.is_set():
            yield batch

    def _decode(self, line: str, line_number: int) -> dict[str, Any] | None:
        line = line.strip()
        if not line:
            return None
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            self._logger.warning("record_decode_failed", line=line_number, error=str(exc))
            return None
        if not isinstance(record, dict):
            self._logger.warning("record_not_object", line=line_number, type=type(record).__name__)
            return None
        return record

    def stop(self) -> None:
        self._stopped.set()

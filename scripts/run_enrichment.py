"""Entry-point for enriching newline-delimited JSON records with a REST lookup."""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import AsyncExitStack

from rest_enrich.api.http_executor import HttpExecutor
from rest_enrich.collectors import JsonLinesSource
from rest_enrich.config import get_settings
from rest_enrich.errors import ConfigurationError
from rest_enrich.filters import RestFilter, RestFilterConfig
from rest_enrich.logging import configure_logging, get_logger
from rest_enrich.pipelines import EnrichmentPipeline
from rest_enrich.storage import JsonLinesSink


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", help="Filter configuration JSON (defaults to REST_ENRICH_FILTER_CONFIG_PATH)")
    parser.add_argument("--input", default="-", help="Input JSON lines file, '-' for stdin")
    parser.add_argument("--output", default="-", help="Output JSON lines file, '-' for stdout")
    parser.add_argument("--max-batches", type=int, default=None)
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, stream=sys.stderr)
    logger = get_logger("run_enrichment")

    executor = HttpExecutor(settings=settings)
    try:
        config = RestFilterConfig.from_path(args.config or settings.filter_config_path)
        rest_filter = RestFilter(config, executor=executor)
    except (ConfigurationError, OSError) as exc:
        logger.error("filter_config_invalid", error=str(exc))
        return 2

    source = JsonLinesSource(args.input, settings=settings)
    sink = JsonLinesSink(args.output)
    pipeline = EnrichmentPipeline(
        source=source,
        enricher=rest_filter,
        sinks=[sink],
        max_concurrency=settings.max_concurrent_records,
        failure_tags=config.tag_on_rest_failure,
    )

    async with AsyncExitStack() as stack:
        await stack.enter_async_context(executor.lifecycle())
        await sink.open()
        stack.push_async_callback(sink.close)
        await pipeline.run(max_batches=args.max_batches)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

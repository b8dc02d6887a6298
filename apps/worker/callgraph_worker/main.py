"""Main entry point for the call graph worker.

Reads coordinate records as JSON lines, generates a call graph for each with
the configured generator, and appends the published records to a JSONL file.

Usage:
    callgraph-worker --input records.jsonl --output callgraphs.jsonl [--generator WALA]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from callgraph_core.analyzers import GENERATORS, create_producer
from callgraph_core.settings import get_settings
from callgraph_core.telemetry import init_telemetry, shutdown_telemetry

from callgraph_worker.plugin import CallGraphPlugin
from callgraph_worker.publisher import JsonlFilePublisher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="callgraph-worker",
        description="Generate and publish call graphs for Maven coordinates",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="JSON lines file with coordinate records (default: stdin)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="JSON lines file receiving published call graphs",
    )
    parser.add_argument(
        "--generator",
        choices=GENERATORS,
        default=None,
        help="Call graph generator (default: from settings)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the worker over every input record.

    Returns:
        0 if every record was processed, 1 otherwise
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = get_settings()
    if args.generator:
        settings = settings.model_copy(update={"generator": args.generator})

    processed = 0
    failed = 0
    try:
        init_telemetry(service_suffix="-worker", settings=settings)
        producer = create_producer(settings)

        with JsonlFilePublisher(args.output) as publisher:
            plugin = CallGraphPlugin(producer, publisher, settings)
            logger.info("Starting %s on %s", plugin.name(), ", ".join(plugin.consumer_topics()))

            stream = args.input.open("r", encoding="utf-8") if args.input else sys.stdin
            try:
                for line in stream:
                    if not line.strip():
                        continue
                    plugin.consume(line)
                    processed += 1
                    if not plugin.record_process_successful():
                        failed += 1
            finally:
                if stream is not sys.stdin:
                    stream.close()
    finally:
        shutdown_telemetry()

    logger.info("Processed %d records, %d failed", processed, failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())

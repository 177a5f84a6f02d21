from __future__ import annotations

"""CLI utility to answer one prompt with the configured pipeline."""

import argparse
import asyncio
import dataclasses
import json
import sys
import uuid

from text_generator.app.dependencies import build_pipeline
from text_generator.app.logging_setup import configure_logging
from text_generator.app.settings import Settings, settings
from text_generator.rag.errors import PipelineError
from text_generator.rag.types import Query


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Answer a prompt using the vector table.")
    parser.add_argument("prompt", help="Prompt text to answer.")
    parser.add_argument("--bucket-name", default=settings.bucket_name, help="Bucket holding the table.")
    parser.add_argument("--prefix", default=settings.prefix, help="Key prefix of the database.")
    parser.add_argument("--table-name", default=settings.table_name, help="Vector table name.")
    parser.add_argument(
        "--lancedb-uri",
        default=settings.lancedb_uri_raw,
        help="Explicit database URI; overrides bucket and prefix.",
    )
    parser.add_argument("--request-id", default=None, help="Correlation id for the request.")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level.")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings = settings) -> Settings:
    """Overlay command-line flags on the environment settings."""
    return dataclasses.replace(
        base,
        bucket_name=args.bucket_name,
        prefix=args.prefix,
        table_name=args.table_name,
        lancedb_uri_raw=args.lancedb_uri,
        log_level=args.log_level,
    )


async def run(args: argparse.Namespace) -> dict[str, str]:
    config = settings_from_args(args)
    pipeline = build_pipeline(config)
    await pipeline.startup()
    query = Query(prompt=args.prompt, request_id=args.request_id or str(uuid.uuid4()))
    envelope = await pipeline.respond(query)
    return envelope.model_dump()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        payload = asyncio.run(run(args))
    except PipelineError as exc:
        print(f"{type(exc).__name__} ({exc.stage}): {exc}", file=sys.stderr)
        return 1
    print(json.dumps(payload, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

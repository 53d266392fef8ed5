#!/usr/bin/env python3
# lovmirror/cli.py
"""
Mirror the LOV vocabulary registry into a static file tree.

Example:

lov-mirror --out-dir public/lov --concurrency 10

Environment: OUT_DIR, CONCURRENCY, LOV_LIST_URL, LOV_INFO_URL,
LOV_REQUEST_TIMEOUT, LOV_TASK_DEADLINE, LOV_RETRY_TOTAL, LOV_USER_AGENT.
Command-line flags win over the environment.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import MirrorConfig
from .pipeline import run_mirror
from .registry import RegistryError

logger = logging.getLogger("lovmirror")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Quiet rdflib's noisy literal-casting warnings (dateTime/decimal, etc.)
    logging.getLogger("rdflib").setLevel(logging.ERROR)
    logging.getLogger("rdflib.term").setLevel(logging.ERROR)


def _csv(value: str) -> list[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Mirror LOV vocabularies into a static Turtle tree with term indexes.")
    ap.add_argument("--out-dir", default=None, help="Output root (env OUT_DIR, default public/lov)")
    ap.add_argument("--concurrency", type=int, default=None, help="Worker count (env CONCURRENCY, default 10)")
    ap.add_argument("--request-timeout", type=float, default=None, help="Per-request timeout in seconds")
    ap.add_argument("--task-deadline", type=float, default=None, help="Wall-clock budget per vocabulary in seconds (0 = none)")
    ap.add_argument("--list-url", default=None, help="Registry listing endpoint")
    ap.add_argument("--info-url", default=None, help="Registry info endpoint (?vocab=<prefix> is appended)")
    ap.add_argument("--only", type=_csv, default=None, help="Comma-separated prefixes to process")
    ap.add_argument("--max", type=int, default=None, help="Limit number of vocabularies processed")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = MirrorConfig.from_env().with_overrides(
            out_root=args.out_dir,
            concurrency=args.concurrency,
            request_timeout=args.request_timeout,
            task_deadline=args.task_deadline,
            list_url=args.list_url,
            info_url=args.info_url,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        summary = run_mirror(config, only=args.only, limit=args.max)
    except RegistryError as e:
        logger.error("%s", e)
        return 1

    logger.info(
        "%d vocabularies: %d ok (%d cached), %d failed",
        summary["count"],
        summary["okCount"],
        summary["skippedCount"],
        summary["count"] - summary["okCount"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

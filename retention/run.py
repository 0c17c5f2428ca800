#!/usr/bin/env python3
"""
CLI entry point for the retention engine.

Usage:
    # Full report from a storage snapshot
    python -m retention.run snapshot.yaml

    # Single section with a tuned config
    python -m retention.run snapshot.yaml --scope churn --config retention.yaml

    # Outreach suggestion for one member
    python -m retention.run snapshot.yaml --member MEMBER_0007

    # Demo on synthetic data
    python -m retention.run --sample 200
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import PredictionConfig
from .errors import DataUnavailable, NotFound
from .frames import to_utc
from .narrative import NarrativeGenerator, OpenAIChatClient
from .orchestrator import SCOPES, PredictionOrchestrator
from .sample import generate_sample_snapshot
from .storage import InMemoryStorage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Member retention and engagement predictions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m retention.run snapshot.yaml
  python -m retention.run snapshot.yaml --scope revenue
  python -m retention.run snapshot.yaml --member MEMBER_0007
  python -m retention.run --sample 200 --output report.json
        """,
    )

    parser.add_argument(
        "snapshot",
        nargs="?",
        help="Path to a YAML storage snapshot",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Use a synthetic snapshot with N members instead of a file",
    )
    parser.add_argument(
        "--scope",
        default="all",
        help=f"Report scope: {', '.join(SCOPES)} (unknown values run all)",
    )
    parser.add_argument(
        "--member",
        help="Generate an outreach recommendation for this member id",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML PredictionConfig override",
    )
    parser.add_argument(
        "--now",
        help="Reference time (ISO 8601), defaults to the current time",
    )
    parser.add_argument(
        "--output",
        help="Write JSON here instead of stdout",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser


def build_narrative(config: PredictionConfig) -> NarrativeGenerator:
    """Use the chat API when a key is configured, otherwise fallbacks only."""
    if os.getenv("OPENAI_API_KEY"):
        return NarrativeGenerator(OpenAIChatClient(), config)
    logging.getLogger(__name__).info("OPENAI_API_KEY not set, using fallback narratives")
    return NarrativeGenerator(None, config)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.snapshot and not args.sample:
        parser.print_help()
        return 1

    config = PredictionConfig.from_yaml(args.config) if args.config else PredictionConfig()
    now = to_utc(args.now) if args.now else None

    try:
        if args.sample:
            storage = InMemoryStorage(generate_sample_snapshot(args.sample, now=now))
        else:
            storage = InMemoryStorage.from_yaml(args.snapshot)

        orchestrator = PredictionOrchestrator(storage, build_narrative(config), config)
        if args.member:
            payload = orchestrator.generate_member_recommendation(args.member, now=now)
        else:
            payload = orchestrator.generate_report(args.scope, now=now).to_dict()
    except NotFound as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except DataUnavailable as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 3

    text = json.dumps(payload, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(text)
        print(f"Report written to: {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())

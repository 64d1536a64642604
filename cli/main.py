#!/usr/bin/env python3
"""
Command-line interface for champion baselines.

Ingests participant records into a diskcache aggregate store, inspects
stored aggregates and scores a player's game against them.

Usage:
    python -m cli.main ingest records.jsonl --store data/aggregates
    python -m cli.main show Ahri 14.3 --store data/aggregates
    python -m cli.main status --store data/aggregates
    python -m cli.main score player.json --store data/aggregates
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from src.models.config import ScoringConfig
from src.models.participant import RecordValidationError, ScoringInputError
from src.models.score import ScoreBreakdown
from src.processors.accumulator import StatsAccumulator
from src.processors.build_keys import (
    ComboKeyNormalizer,
    ItemCatalog,
    skill_max_order,
    starting_items_key,
)
from src.processors.patches import extract_patch
from src.service.pipeline import IngestionPipeline
from src.service.store import DiskCacheAggregateStore

DEFAULT_STORE_DIR = "data/aggregates"


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for CLI usage."""
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
    else:
        logger.add(sys.stderr, level="INFO")


def read_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    """Yield one mapping per non-empty line of a JSON Lines file."""
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{path}:{line_number}: skipping malformed JSON ({e})")


def _prepare_record(raw: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Split the remake flag off a raw record and derive patch and build signatures."""
    record = dict(raw)
    is_remake = bool(record.pop("is_remake", False))
    game_version = record.pop("game_version", None)
    if not record.get("patch") and game_version:
        record["patch"] = extract_patch(game_version)

    ability_order = record.pop("ability_order", None)
    if record.get("skill_order") is None and ability_order:
        record["skill_order"] = skill_max_order(ability_order)

    starting_items = record.pop("starting_items", None)
    if record.get("first_buy") is None and starting_items:
        record["first_buy"] = starting_items_key(starting_items)
    return record, is_remake


def cmd_ingest(args: argparse.Namespace) -> int:
    """Ingest a JSONL file of participant records into the store."""
    config = ScoringConfig.load(args.config)
    if args.accept_patch:
        config.accepted_patches = list(args.accept_patch)

    catalog = ItemCatalog.from_json(args.items) if args.items else ItemCatalog()
    accumulator = StatsAccumulator(ComboKeyNormalizer(catalog))

    with DiskCacheAggregateStore(args.store) as store:
        pipeline = IngestionPipeline(accumulator=accumulator, store=store, config=config)
        ingested = skipped = invalid = 0

        for raw in read_jsonl(Path(args.records)):
            record, is_remake = _prepare_record(raw)
            try:
                if pipeline.ingest_match(record, is_remake=is_remake):
                    ingested += 1
                else:
                    skipped += 1
            except RecordValidationError:
                invalid += 1
                continue

            if pipeline.accumulator.record_count >= args.flush_every:
                pipeline.flush_to_store()

        result = pipeline.flush_to_store()

    print(f"Ingested: {ingested}")
    print(f"Skipped:  {skipped} (remakes or non-accepted patches)")
    print(f"Invalid:  {invalid}")
    if not result.ok:
        print(f"Failed to persist: {', '.join(f'{c} {p}' for c, p in result.failed)}")
        return 1
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print a stored aggregate."""
    with DiskCacheAggregateStore(args.store) as store:
        aggregate = store.load(args.champion, args.patch)

    if aggregate is None:
        print(f"No aggregate stored for {args.champion} {args.patch}")
        return 1

    if args.json:
        print(json.dumps(aggregate.to_dict(), indent=2))
        return 0

    print("=" * 60)
    print(f"{aggregate.champion_name} - patch {aggregate.patch}")
    print("=" * 60)
    print(f"  Games:   {aggregate.games}")
    print(f"  Winrate: {aggregate.winrate * 100:.1f}%")
    print()
    print("  Rates (mean / stddev / n):")
    for metric, acc in aggregate.rates.items():
        print(f"    {metric:<30} {acc.mean:>10.2f} {acc.stddev:>10.2f} {acc.n:>6}")
    print()
    print(f"  Top core builds (of {len(aggregate.core)}):")
    for choice in aggregate.core_counter().ranked()[: args.top]:
        print(f"    {choice.key:<20} {choice.games:>6} games {choice.winrate * 100:>6.1f}%")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Print store statistics."""
    with DiskCacheAggregateStore(args.store) as store:
        status = store.get_status()

    print("--- STORE STATUS ---")
    print(f"  Aggregates:  {status.aggregates}")
    print(f"  Champions:   {status.champions}")
    print(f"  Total games: {status.total_games}")
    print(f"  Patches:     {', '.join(status.patches) or 'none'}")
    print(f"  Store size:  {status.size_mb:.1f} MB")
    return 0


def print_breakdown(breakdown: ScoreBreakdown) -> None:
    """Print a score breakdown in readable form."""
    print("=" * 60)
    print(f"{breakdown.champion_name} {breakdown.patch}: {breakdown.final_score:.1f}")
    if breakdown.used_fallback_patch:
        print(f"  (baseline from patch {breakdown.patch_used or 'none'})")
    print("=" * 60)
    for name, value in breakdown.component_scores.items():
        print(f"  {name:<12} {value:>6.1f}")
    print()
    print("  Build:")
    for name, value in breakdown.build_sub_scores.items():
        flags = breakdown.fallbacks.get(name)
        note = " (no data)" if flags and flags.no_data else ""
        print(f"    {name:<10} {value:>6.1f}{note}")
    print()
    print("  Metrics:")
    for metric in breakdown.metrics:
        print(f"    {metric.name:<30} {metric.score:>6.1f}  ({metric.source.value})")


def cmd_score(args: argparse.Namespace) -> int:
    """Score a player's game (JSON file) against the store."""
    config = ScoringConfig.load(args.config)
    with open(args.player) as f:
        player = json.load(f)

    with DiskCacheAggregateStore(args.store) as store:
        pipeline = IngestionPipeline(store=store, config=config)
        try:
            breakdown = pipeline.score(player)
        except ScoringInputError as e:
            print(f"ERROR: {e}")
            return 1

    if args.json:
        print(breakdown.model_dump_json(indent=2))
    else:
        print_breakdown(breakdown)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Champion baseline aggregation and scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ingest records, flushing every 500 records
  python -m cli.main ingest records.jsonl --flush-every 500

  # Only accept two patches
  python -m cli.main ingest records.jsonl --accept-patch 14.3 --accept-patch 14.4

  # Inspect and score
  python -m cli.main show Ahri 14.3
  python -m cli.main score player.json --json
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE_DIR,
        help=f"Aggregate store directory (default: {DEFAULT_STORE_DIR})",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Scoring config YAML (default: config/scoring.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a JSONL file of records")
    ingest_parser.add_argument("records", help="Path to JSONL participant records")
    ingest_parser.add_argument(
        "--flush-every",
        type=int,
        default=1000,
        help="Flush to the store every N records (default: 1000)",
    )
    ingest_parser.add_argument(
        "--accept-patch",
        action="append",
        default=None,
        help="Accepted patch (repeatable; default: from config)",
    )
    ingest_parser.add_argument(
        "--items",
        default=None,
        help="Item data JSON with item types (default: id-range heuristic)",
    )

    show_parser = subparsers.add_parser("show", help="Show a stored aggregate")
    show_parser.add_argument("champion", help="Champion name")
    show_parser.add_argument("patch", help="Patch, e.g. 14.3")
    show_parser.add_argument("--top", type=int, default=5, help="Core builds to list")
    show_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    subparsers.add_parser("status", help="Show store statistics")

    score_parser = subparsers.add_parser("score", help="Score a player's game")
    score_parser.add_argument("player", help="Path to a JSON player record")
    score_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    commands = {
        "ingest": cmd_ingest,
        "show": cmd_show,
        "status": cmd_status,
        "score": cmd_score,
    }
    if args.command not in commands:
        parser.print_help()
        return 1
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

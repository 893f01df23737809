"""
CLI command entry points for knowledge_coverage_graph.

These functions are registered as console scripts in pyproject.toml.
"""

import argparse
import json
import logging
from pathlib import Path

from knowledge_coverage_graph.cache import AppCache
from knowledge_coverage_graph.cli.args import add_execute_argument, add_threshold_argument
from knowledge_coverage_graph.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from knowledge_coverage_graph.config import get_settings
from knowledge_coverage_graph.embeddings.openai_client import (
    EmbeddingProvider,
    suppress_http_logging,
)
from knowledge_coverage_graph.graph.models import Product, QuestionEvent
from knowledge_coverage_graph.pipeline import CoveragePipeline, CoverageReport
from knowledge_coverage_graph.store import CacheStore, GraphStore, MemoryStore
from knowledge_coverage_graph.tracking.time_series import TimeSeriesTracker


def _load_json_list(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list, got {type(data).__name__}")
    return data


def _log_summary(report: CoverageReport, logger: logging.Logger) -> None:
    overlap = report.merge.overlap_analysis
    logger.info(f"Knowledge nodes: {len(report.company_graph.knowledge_nodes())}")
    logger.info(f"User questions:  {overlap.total_user_nodes}")
    logger.info(f"Covered:         {overlap.overlap}")
    logger.info(f"Coverage rate:   {overlap.coverage_rate}%")
    logger.info(
        f"Trend:           {report.trend.trend} ({report.trend.change_rate:+.1f}%"
        f"{', significant' if report.trend.significant else ''})"
    )
    logger.info(f"Communities:     {len(report.analysis.communities)}")

    blind_spots = report.analysis.blind_spots
    if blind_spots:
        logger.info("")
        logger.info(f"Blind spots ({len(blind_spots)}):")
        for spot in blind_spots[:10]:
            logger.info(f"  [{spot.severity}] {spot.type}: {spot.description}")
        if len(blind_spots) > 10:
            logger.info(f"  ... and {len(blind_spots) - 10} more")


def run_coverage_report(argv: list[str] | None = None) -> int:
    """Entry point for coverage-report command."""
    parser = argparse.ArgumentParser(
        description="Match user questions against company knowledge and report coverage"
    )
    parser.add_argument("--products", type=Path, required=True, help="Products JSON file")
    parser.add_argument("--questions", type=Path, required=True, help="Question events JSON file")
    parser.add_argument("--output", type=Path, help="Write the full report as JSON")
    add_threshold_argument(parser)
    add_execute_argument(parser)
    args = parser.parse_args(argv)

    settings = get_settings()
    logger = setup_logging("coverage_report", execute=args.execute)
    suppress_http_logging()

    title = "Knowledge Coverage Report"
    if args.execute:
        print_execute_header(title, logger)
    else:
        print_dry_run_header(title, logger)

    try:
        products = [Product.from_dict(p) for p in _load_json_list(args.products)]
        events = [QuestionEvent.from_dict(q) for q in _load_json_list(args.questions)]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1

    threshold = args.threshold if args.threshold is not None else settings.similarity_threshold

    cache = AppCache(settings.cache_dir) if args.execute else None
    try:
        store = GraphStore(CacheStore(cache) if cache is not None else MemoryStore())
        tracker = TimeSeriesTracker(
            retention=settings.time_series_retention,
            records=store.load_time_series(),
        )
        embedder = EmbeddingProvider.from_settings(settings)
        pipeline = CoveragePipeline(embedder, store=store, tracker=tracker)

        report = pipeline.run(products, events, threshold)
    finally:
        if cache is not None:
            cache.close()

    _log_summary(report, logger)
    logger.info(f"Embeddings: {embedder.stats}")

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info(f"Report written to {args.output}")

    if not args.execute:
        logger.info("")
        logger.info("Dry run: nothing persisted. Use --execute to keep graphs and history.")
    return 0


def run_cache(argv: list[str] | None = None) -> int:
    """Entry point for coverage-cache command."""
    parser = argparse.ArgumentParser(description="Manage the coverage cache")
    parser.add_argument("command", choices=["stats", "list", "clear"])
    parser.add_argument("--namespace", "-n", help="Filter by namespace")
    parser.add_argument("--limit", type=int, default=20, help="Limit for list")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    args = parser.parse_args(argv)

    cache = AppCache(get_settings().cache_dir)
    try:
        if args.command == "stats":
            stats = cache.stats()
            print(f"Cache: {stats['cache_dir']}")
            print(f"  Total entries: {stats['total']}")
            print(f"  Size: {stats['size_mb']} MB")
            print("  By namespace:")
            for ns, count in sorted(stats["by_namespace"].items()):
                print(f"    {ns}: {count}")

        elif args.command == "list":
            keys = cache.keys(namespace=args.namespace, limit=args.limit)
            ns_label = args.namespace or "all"
            print(f"Keys ({ns_label}, limit {args.limit}):")
            for key in keys:
                print(f"  {key}")

        elif args.command == "clear":
            if not args.namespace:
                print("Specify --namespace to clear, or remove the cache directory")
                return 1
            if not args.yes:
                confirm = input(f"Clear all {args.namespace} entries? [y/N] ")
                if confirm.lower() != "y":
                    print("Aborted")
                    return 1
            count = cache.clear_namespace(args.namespace)
            print(f"Cleared {count} entries from {args.namespace}")
    finally:
        cache.close()
    return 0

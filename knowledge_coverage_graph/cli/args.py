"""
Argument parsing utilities for knowledge_coverage_graph CLI.

Provides standard argument patterns used across commands.
"""

import argparse


def add_execute_argument(parser):
    """
    Add standard --execute argument to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Persist graphs and history to the disk cache (default is dry-run)",
    )


def similarity_threshold(value: str) -> float:
    """argparse type: a float strictly between 0 and 1."""
    try:
        threshold = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not 0.0 < threshold < 1.0:
        raise argparse.ArgumentTypeError(f"threshold must be in (0, 1), got {threshold}")
    return threshold


def add_threshold_argument(parser, default: float | None = None):
    """
    Add --threshold to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
        default: Default threshold; None means "use settings"
    """
    parser.add_argument(
        "--threshold",
        type=similarity_threshold,
        default=default,
        help="Minimum cosine similarity for a question to count as covered",
    )

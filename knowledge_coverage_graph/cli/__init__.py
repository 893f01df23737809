"""
CLI utilities for knowledge_coverage_graph.

Provides logging setup, argument parsing, and command entry points.
"""

from knowledge_coverage_graph.cli.args import add_execute_argument, add_threshold_argument
from knowledge_coverage_graph.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)

__all__ = [
    "add_execute_argument",
    "add_threshold_argument",
    "print_dry_run_header",
    "print_execute_header",
    "setup_logging",
]

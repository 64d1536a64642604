"""
CLI Module for Champion Baselines

Command-line interface for ingesting participant records, inspecting
stored aggregates and scoring games.

Usage:
    python -m cli.main --help
"""

from cli.main import main

__all__ = ["main"]

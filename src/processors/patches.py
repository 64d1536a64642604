"""
Patch Utilities

Patch string handling for aggregation keys and the scoring fallback
chain, plus the ingestion policy that decides which records are folded
into baselines at all.
"""

from __future__ import annotations

from typing import Iterable

from loguru import logger

UNKNOWN_PATCH = "unknown"

# The match API reports season 15 as "15.x"; patches are published as "25.x"
API_SEASON_PREFIX = "15."
PUBLISHED_SEASON_PREFIX = "25."


def extract_patch(game_version: str | None) -> str:
    """
    Reduce an API game version to its patch string.

    Examples:
        "14.3.558.1234" -> "14.3"
        "15.7.672.1209" -> "25.7"
    """
    if not game_version:
        return UNKNOWN_PATCH
    patch = ".".join(game_version.split(".")[:2])
    if patch.startswith(API_SEASON_PREFIX):
        return PUBLISHED_SEASON_PREFIX + patch[len(API_SEASON_PREFIX):]
    return patch


def patch_sort_key(patch: str) -> tuple[int, ...]:
    """Numeric sort key so "14.10" sorts after "14.9"; unparseable parts sort first."""
    parts = []
    for part in patch.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(-1)
    return tuple(parts)


def prior_patches(patch: str, available: Iterable[str]) -> list[str]:
    """Patches strictly older than ``patch``, nearest first."""
    current = patch_sort_key(patch)
    older = [p for p in set(available) if patch_sort_key(p) < current]
    return sorted(older, key=patch_sort_key, reverse=True)


def nearest_prior_patch(patch: str, available: Iterable[str]) -> str | None:
    """The most recent patch older than ``patch``, if any."""
    older = prior_patches(patch, available)
    return older[0] if older else None


class IngestPolicy:
    """
    Decides whether a record should be folded into baselines.

    Remakes are always rejected; when ``accepted_patches`` is non-empty,
    records from other patches are rejected too.
    """

    def __init__(self, accepted_patches: Iterable[str] | None = None) -> None:
        self.accepted_patches = frozenset(accepted_patches or ())

    def accepts_patch(self, patch: str) -> bool:
        if not self.accepted_patches:
            return True
        return patch in self.accepted_patches

    def should_ingest(self, patch: str, is_remake: bool = False) -> bool:
        """
        Args:
            patch: Record patch string
            is_remake: Whether the game ended as an early surrender

        Returns:
            True if the record belongs in the baselines
        """
        if is_remake:
            logger.debug(f"Skipping remake on patch {patch}")
            return False
        if not self.accepts_patch(patch):
            logger.debug(f"Skipping record from non-accepted patch {patch}")
            return False
        return True

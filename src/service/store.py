"""
Aggregate Store Service

Key-value persistence for champion+patch aggregates. The engine only
needs "load by key" and "upsert by key"; ``merge_upsert`` applies the
merger inside the store so concurrent flushes of the same key do not
lose updates.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from diskcache import Cache
from loguru import logger

from src.models.aggregate import ChampionPatchAggregate
from src.processors.merger import AggregateMerger
from src.processors.patches import patch_sort_key


class AggregateStore(Protocol):
    """Persistence interface consumed by the ingestion pipeline."""

    def load(self, champion_name: str, patch: str) -> ChampionPatchAggregate | None: ...

    def save(self, aggregate: ChampionPatchAggregate) -> None: ...

    def merge_upsert(self, aggregate: ChampionPatchAggregate) -> ChampionPatchAggregate: ...

    def patches(self, champion_name: str) -> list[str]: ...

    def history(self, champion_name: str) -> list[ChampionPatchAggregate]: ...


@dataclass
class StoreStatus:
    """Summary of what a store holds."""

    aggregates: int = 0
    champions: int = 0
    total_games: int = 0
    size_mb: float = 0.0
    patches: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "aggregates": self.aggregates,
            "champions": self.champions,
            "total_games": self.total_games,
            "size_mb": round(self.size_mb, 2),
            "patches": self.patches,
        }


class InMemoryAggregateStore:
    """Dictionary-backed store for tests and single-process runs."""

    def __init__(self, merger: AggregateMerger | None = None) -> None:
        self.merger = merger or AggregateMerger()
        self._data: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.Lock()

    def load(self, champion_name: str, patch: str) -> ChampionPatchAggregate | None:
        data = self._data.get((champion_name, patch))
        return ChampionPatchAggregate.from_dict(data) if data is not None else None

    def save(self, aggregate: ChampionPatchAggregate) -> None:
        self._data[aggregate.key] = aggregate.to_dict()

    def merge_upsert(self, aggregate: ChampionPatchAggregate) -> ChampionPatchAggregate:
        with self._lock:
            merged = self.merger.merge_champion_patch(
                self.load(aggregate.champion_name, aggregate.patch), aggregate
            )
            self.save(merged)
        return merged

    def patches(self, champion_name: str) -> list[str]:
        found = [patch for champion, patch in self._data if champion == champion_name]
        return sorted(found, key=patch_sort_key)

    def history(self, champion_name: str) -> list[ChampionPatchAggregate]:
        return [self.load(champion_name, patch) for patch in self.patches(champion_name)]

    def __len__(self) -> int:
        return len(self._data)


class DiskCacheAggregateStore:
    """
    diskcache-backed store.

    Aggregates are stored as plain dictionaries under
    ``aggregate:{champion}|{patch}``, with a per-champion patch index under
    ``patches:{champion}``. ``merge_upsert`` runs inside ``Cache.transact``,
    which serializes writers across threads and processes sharing the
    directory.
    """

    AGGREGATE_PREFIX = "aggregate:"
    PATCHES_PREFIX = "patches:"

    def __init__(
        self,
        cache_dir: str | Path = "data/aggregates",
        merger: AggregateMerger | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            cache_dir: Directory for the cache database
            merger: Merger used by merge_upsert
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache = Cache(str(self.cache_dir))
        self.merger = merger or AggregateMerger()
        logger.info(f"Aggregate store opened at {self.cache_dir}")

    def _key(self, champion_name: str, patch: str) -> str:
        return f"{self.AGGREGATE_PREFIX}{champion_name}|{patch}"

    def load(self, champion_name: str, patch: str) -> ChampionPatchAggregate | None:
        """
        Load the aggregate for a champion and patch.

        Returns:
            The aggregate, or None if nothing has been stored
        """
        data = self.cache.get(self._key(champion_name, patch))
        if data is None:
            return None
        return ChampionPatchAggregate.from_dict(data)

    def save(self, aggregate: ChampionPatchAggregate) -> None:
        """Overwrite the stored aggregate for the aggregate's key."""
        with self.cache.transact():
            self._write(aggregate)

    def _write(self, aggregate: ChampionPatchAggregate) -> None:
        self.cache.set(self._key(aggregate.champion_name, aggregate.patch), aggregate.to_dict())

        index_key = f"{self.PATCHES_PREFIX}{aggregate.champion_name}"
        known = self.cache.get(index_key) or []
        if aggregate.patch not in known:
            self.cache.set(index_key, sorted([*known, aggregate.patch], key=patch_sort_key))

    def merge_upsert(self, aggregate: ChampionPatchAggregate) -> ChampionPatchAggregate:
        """
        Atomically merge ``aggregate`` into whatever is stored for its key.

        Returns:
            The merged aggregate that was written
        """
        with self.cache.transact():
            existing = self.load(aggregate.champion_name, aggregate.patch)
            merged = self.merger.merge_champion_patch(existing, aggregate)
            self._write(merged)
        return merged

    def patches(self, champion_name: str) -> list[str]:
        """Stored patches for a champion, oldest first."""
        return list(self.cache.get(f"{self.PATCHES_PREFIX}{champion_name}") or [])

    def history(self, champion_name: str) -> list[ChampionPatchAggregate]:
        """Every stored aggregate for a champion, oldest patch first."""
        aggregates = []
        for patch in self.patches(champion_name):
            aggregate = self.load(champion_name, patch)
            if aggregate is not None:
                aggregates.append(aggregate)
        return aggregates

    def get_status(self) -> StoreStatus:
        """
        Get current store statistics.

        Returns:
            StoreStatus with counts and on-disk size
        """
        status = StoreStatus()
        champions: set[str] = set()
        patches: set[str] = set()

        for key in self.cache.iterkeys():
            if not key.startswith(self.AGGREGATE_PREFIX):
                continue
            champion, _, patch = key[len(self.AGGREGATE_PREFIX):].partition("|")
            status.aggregates += 1
            champions.add(champion)
            patches.add(patch)
            data = self.cache.get(key) or {}
            status.total_games += int(data.get("games", 0))

        status.champions = len(champions)
        status.patches = sorted(patches, key=patch_sort_key)

        cache_path = self.cache_dir / "cache.db"
        if cache_path.exists():
            status.size_mb = cache_path.stat().st_size / (1024 * 1024)
        return status

    def clear(self) -> None:
        """Remove every stored aggregate."""
        self.cache.clear()
        logger.info("Aggregate store cleared")

    def close(self) -> None:
        """Close resources."""
        self.cache.close()

    def __enter__(self) -> "DiskCacheAggregateStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

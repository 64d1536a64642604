"""
Aggregate Merger

Exact combination of independently accumulated aggregates:
- Rate distributions merge with the parallel mean/variance formula
- Categorical counters merge by key union with games/wins summed
- Core build sub-aggregates merge recursively by core key union

Every merge is pure; inputs are never mutated, so a merge can be
repeated safely during persistence retries.
"""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from src.analytics.counters import CategoricalCounter
from src.models.aggregate import ITEM_SLOTS, ChampionPatchAggregate, CoreAggregate
from src.processors.accumulator import AggregateEntry


def _merge_counter_maps(
    a: dict[int, CategoricalCounter], b: dict[int, CategoricalCounter]
) -> dict[int, CategoricalCounter]:
    merged: dict[int, CategoricalCounter] = {}
    for slot in sorted(set(a) | set(b) | set(ITEM_SLOTS)):
        left = a.get(slot, CategoricalCounter())
        right = b.get(slot, CategoricalCounter())
        merged[slot] = left.merge(right)
    return merged


class AggregateMerger:
    """Combines aggregates from flush cycles or parallel accumulators."""

    def merge_core(self, existing: CoreAggregate, incoming: CoreAggregate) -> CoreAggregate:
        """
        Merge two core-level aggregates.

        Args:
            existing: Previously persisted (or left-hand) aggregate
            incoming: Newly drained (or right-hand) aggregate

        Returns:
            New aggregate equivalent to folding both record sets
        """
        rates = {}
        for metric in set(existing.rates) | set(incoming.rates):
            left = existing.rates.get(metric)
            right = incoming.rates.get(metric)
            if left is None:
                rates[metric] = right.copy()
            elif right is None:
                rates[metric] = left.copy()
            else:
                rates[metric] = left.merge(right)

        return CoreAggregate(
            games=existing.games + incoming.games,
            wins=existing.wins + incoming.wins,
            rates=rates,
            items=_merge_counter_maps(existing.items, incoming.items),
            runes=existing.runes.merge(incoming.runes),
            spells=existing.spells.merge(incoming.spells),
            starting=existing.starting.merge(incoming.starting),
            skills=existing.skills.merge(incoming.skills),
        )

    def merge_champion_patch(
        self,
        existing: ChampionPatchAggregate | None,
        incoming: ChampionPatchAggregate,
    ) -> ChampionPatchAggregate:
        """
        Merge two aggregates for the same champion and patch.

        An empty identity (a freshly constructed aggregate) takes the other
        side's identity, so merging with an empty aggregate is a no-op.

        Args:
            existing: Persisted aggregate, or None if nothing is stored yet
            incoming: Aggregate to fold in

        Returns:
            New merged aggregate

        Raises:
            ValueError: If both sides carry different champion/patch keys
        """
        if existing is None:
            existing = ChampionPatchAggregate(
                champion_name=incoming.champion_name, patch=incoming.patch
            )

        champion = self._pick_identity(existing.champion_name, incoming.champion_name, "champion")
        patch = self._pick_identity(existing.patch, incoming.patch, "patch")

        body = self.merge_core(existing, incoming)

        core: dict[str, CoreAggregate] = {}
        for core_key in set(existing.core) | set(incoming.core):
            left = existing.core.get(core_key)
            right = incoming.core.get(core_key)
            if left is not None and right is not None:
                core[core_key] = self.merge_core(left, right)
            else:
                only = left if left is not None else right
                core[core_key] = self.merge_core(only, CoreAggregate())

        return ChampionPatchAggregate(
            champion_name=champion,
            patch=patch,
            core=core,
            games=body.games,
            wins=body.wins,
            rates=body.rates,
            items=body.items,
            runes=body.runes,
            spells=body.spells,
            starting=body.starting,
            skills=body.skills,
        )

    @staticmethod
    def _pick_identity(left: str, right: str, label: str) -> str:
        if left and right and left != right:
            raise ValueError(f"Cannot merge aggregates with different {label}: {left!r} vs {right!r}")
        return left or right

    def merge_snapshots(self, *snapshots: Iterable[AggregateEntry]) -> list[AggregateEntry]:
        """
        Combine drained snapshots from several accumulators.

        Args:
            snapshots: Lists of (champion, patch, aggregate) tuples

        Returns:
            One entry per distinct (champion, patch), in first-seen order
        """
        combined: dict[tuple[str, str], ChampionPatchAggregate] = {}
        for snapshot in snapshots:
            for champion, patch, aggregate in snapshot:
                key = (champion, patch)
                combined[key] = self.merge_champion_patch(combined.get(key), aggregate)

        logger.debug(f"Merged {len(snapshots)} snapshots into {len(combined)} aggregates")
        return [(champion, patch, agg) for (champion, patch), agg in combined.items()]

"""
Stats Accumulator

Online aggregation of participant records into per-champion-per-patch
baselines. Each record is folded into running statistics and then
discarded; periodic flush cycles drain the in-memory aggregates.
"""

from __future__ import annotations

import copy

from loguru import logger

from src.models.aggregate import ChampionPatchAggregate, CoreAggregate
from src.models.participant import ParticipantStatsInput
from src.processors.build_keys import (
    ComboKeyNormalizer,
    normalize_starting_key,
    spell_pair_key,
)

AggregateEntry = tuple[str, str, ChampionPatchAggregate]


class StatsAccumulator:
    """
    In-memory aggregator for one ingestion pipeline.

    Single-writer: ``add`` is called from one ingestion loop. Separate
    processes each own an accumulator and reconcile through the merger
    at flush time.
    """

    def __init__(self, normalizer: ComboKeyNormalizer | None = None) -> None:
        """
        Initialize the accumulator.

        Args:
            normalizer: Core build key normalizer (default item catalog if omitted)
        """
        self.normalizer = normalizer or ComboKeyNormalizer()
        self._aggregates: dict[tuple[str, str], ChampionPatchAggregate] = {}
        self._record_count = 0

    @property
    def record_count(self) -> int:
        """Records added since the last drain."""
        return self._record_count

    def __len__(self) -> int:
        """Number of distinct (champion, patch) aggregates held."""
        return len(self._aggregates)

    def add(self, record: ParticipantStatsInput) -> str | None:
        """
        Fold one participant record into its champion+patch aggregate.

        Args:
            record: Validated participant record

        Returns:
            The core build key the record was bucketed under, if any
        """
        key = (record.champion_name, record.patch)
        aggregate = self._aggregates.get(key)
        if aggregate is None:
            aggregate = ChampionPatchAggregate(
                champion_name=record.champion_name, patch=record.patch
            )
            self._aggregates[key] = aggregate

        self._record_count += 1
        rates = record.per_minute_rates()
        self._fold(aggregate, record, rates)

        if record.build_order:
            core_key = self.normalizer.core_key(record.build_order, record.items)
        else:
            core_key = self.normalizer.core_key(record.items)

        if core_key is not None:
            self._fold(aggregate.core_build(core_key), record, rates)

        return core_key

    def _fold(
        self,
        target: CoreAggregate,
        record: ParticipantStatsInput,
        rates: dict[str, float],
    ) -> None:
        """Apply one record to a champion-level or core-level aggregate."""
        won = record.win
        target.games += 1
        if won:
            target.wins += 1

        for metric, value in rates.items():
            target.rate(metric).update(value)

        for position, item_id in enumerate(record.items[:6], start=1):
            if item_id > 0:
                target.item_slot(position).increment(item_id, won)

        runes = target.runes
        if record.keystone_id > 0:
            runes.keystone.increment(record.keystone_id, won)
        for rune_id in record.primary_runes:
            if rune_id > 0:
                runes.primary.increment(rune_id, won)
        for rune_id in record.secondary_runes:
            if rune_id > 0:
                runes.secondary.increment(rune_id, won)

        if record.stat_perk0 > 0:
            runes.offense.increment(record.stat_perk0, won)
        if record.stat_perk1 > 0:
            runes.flex.increment(record.stat_perk1, won)
        if record.stat_perk2 > 0:
            runes.defense.increment(record.stat_perk2, won)

        if record.rune_tree_primary > 0:
            runes.tree_primary.increment(record.rune_tree_primary, won)
        if record.rune_tree_secondary > 0:
            runes.tree_secondary.increment(record.rune_tree_secondary, won)

        if record.spell1_id > 0 and record.spell2_id > 0:
            target.spells.increment(spell_pair_key(record.spell1_id, record.spell2_id), won)

        starting = normalize_starting_key(record.first_buy)
        if starting:
            target.starting.increment(starting, won)

        if record.skill_order:
            target.skills.increment(record.skill_order, won)

    def get(self, champion_name: str, patch: str) -> ChampionPatchAggregate | None:
        """Live aggregate for a key (not a copy)."""
        return self._aggregates.get((champion_name, patch))

    def snapshot(self) -> list[AggregateEntry]:
        """Deep copy of the current aggregates without resetting state."""
        return [
            (champion, patch, copy.deepcopy(aggregate))
            for (champion, patch), aggregate in self._aggregates.items()
        ]

    def drain(self) -> list[AggregateEntry]:
        """
        Hand over every aggregate and reset to empty.

        The returned aggregates are no longer referenced by the
        accumulator, so a failed persistence attempt can be retried on them
        without re-ingesting.

        Returns:
            (champion, patch, aggregate) tuples
        """
        entries = [
            (champion, patch, aggregate)
            for (champion, patch), aggregate in self._aggregates.items()
        ]
        if entries:
            logger.info(
                f"Drained {len(entries)} champion+patch aggregates "
                f"({self._record_count} records)"
            )
        self._aggregates = {}
        self._record_count = 0
        return entries

    def reset(self) -> None:
        """Discard all accumulated statistics."""
        self._aggregates.clear()
        self._record_count = 0

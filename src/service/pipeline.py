"""
Ingestion Pipeline Service

The surface the rest of the system talks to:
  1. ingest() - validate one participant record and fold it into the accumulator
  2. flush() - drain everything accumulated since the last flush
  3. score() - score a player's game against a baseline

Plus the flush cycle glue: persisting drained snapshots through the
store's atomic merge-upsert and keeping failed entries for retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from src.models.aggregate import ChampionPatchAggregate
from src.models.config import ScoringConfig
from src.models.participant import (
    ParticipantStatsInput,
    PlayerMatchStats,
    RecordValidationError,
)
from src.models.score import ScoreBreakdown
from src.processors.accumulator import AggregateEntry, StatsAccumulator
from src.processors.merger import AggregateMerger
from src.processors.patches import IngestPolicy
from src.processors.scoring import ScoringEngine
from src.service.store import AggregateStore


@dataclass
class FlushResult:
    """Outcome of one flush-and-persist cycle."""

    records: int = 0
    persisted: int = 0
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class IngestionPipeline:
    """
    Owns one accumulator and connects it to a store and a scoring engine.

    Lifecycle: create -> many ingest() -> flush() -> reuse. Collaborators
    are passed in; nothing is shared between pipeline instances.
    """

    def __init__(
        self,
        accumulator: StatsAccumulator | None = None,
        merger: AggregateMerger | None = None,
        engine: ScoringEngine | None = None,
        store: AggregateStore | None = None,
        policy: IngestPolicy | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            accumulator: In-memory aggregator (creates one if not provided)
            merger: Aggregate merger (creates one if not provided)
            engine: Scoring engine (creates one from ``config`` if not provided)
            store: Persistence for flush_to_store() and store-backed scoring
            policy: Ingestion policy (accepted patches from ``config``)
            config: Scoring configuration
        """
        self.config = config or ScoringConfig()
        self.accumulator = accumulator or StatsAccumulator()
        self.merger = merger or AggregateMerger()
        self.engine = engine or ScoringEngine(self.config, self.accumulator.normalizer)
        self.store = store
        self.policy = policy or IngestPolicy(self.config.accepted_patches)

        # Drained entries whose persistence failed, retried on the next flush
        self._pending: list[AggregateEntry] = []
        self.rejected = 0

    @property
    def pending(self) -> list[AggregateEntry]:
        return list(self._pending)

    def ingest(
        self,
        record: ParticipantStatsInput | dict[str, Any],
        should_ingest: bool = True,
    ) -> bool:
        """
        Validate and accumulate one participant record.

        Args:
            record: Record or raw mapping of record fields
            should_ingest: Caller's policy decision (remake, accepted patch)

        Returns:
            True if the record was accumulated

        Raises:
            RecordValidationError: If the record is malformed; nothing is
                accumulated in that case
        """
        if not should_ingest:
            return False

        if not isinstance(record, ParticipantStatsInput):
            try:
                record = ParticipantStatsInput.model_validate(record)
            except ValidationError as e:
                self.rejected += 1
                logger.warning(f"Rejected participant record: {e.error_count()} validation errors")
                raise RecordValidationError(str(e)) from e

        self.accumulator.add(record)
        return True

    def ingest_match(
        self,
        record: ParticipantStatsInput | dict[str, Any],
        is_remake: bool = False,
    ) -> bool:
        """Ingest a record after applying the pipeline's own policy."""
        patch = record.patch if isinstance(record, ParticipantStatsInput) else str(record.get("patch", ""))
        return self.ingest(record, should_ingest=self.policy.should_ingest(patch, is_remake))

    def ingest_many(self, records: Iterable[ParticipantStatsInput | dict[str, Any]]) -> int:
        """
        Ingest a batch, skipping (and logging) invalid records.

        Returns:
            Number of records accumulated
        """
        count = 0
        for record in records:
            try:
                if self.ingest(record):
                    count += 1
            except RecordValidationError:
                continue
        return count

    def flush(self) -> list[AggregateEntry]:
        """
        Drain and return everything accumulated since the last flush.

        The caller owns the returned snapshot; the accumulator is already
        empty, so a failed write is retried on the snapshot itself.
        """
        return self.accumulator.drain()

    def persist(
        self,
        snapshot: Iterable[AggregateEntry],
        store: AggregateStore | None = None,
    ) -> list[AggregateEntry]:
        """
        Merge-upsert each entry of a drained snapshot into the store.

        Args:
            snapshot: Entries returned by flush()
            store: Target store (the pipeline's store if omitted)

        Returns:
            Entries that could not be written, unchanged for a retry
        """
        target = store or self.store
        if target is None:
            raise ValueError("No aggregate store configured")

        failed: list[AggregateEntry] = []
        for champion, patch, aggregate in snapshot:
            try:
                target.merge_upsert(aggregate)
            except Exception as e:
                logger.error(f"Failed to persist {champion} {patch}: {e}")
                failed.append((champion, patch, aggregate))
        return failed

    def flush_to_store(self) -> FlushResult:
        """
        Run one flush cycle against the pipeline's store.

        Entries that failed on a previous cycle are merged with the fresh
        snapshot and retried first.

        Returns:
            FlushResult with counts and the keys still pending

        Raises:
            ValueError: If no store is configured; nothing is drained then
        """
        if self.store is None:
            raise ValueError("No aggregate store configured")

        records = self.accumulator.record_count
        entries = self.flush()
        if self._pending:
            entries = self.merger.merge_snapshots(self._pending, entries)

        failed = self.persist(entries)
        self._pending = failed

        result = FlushResult(
            records=records,
            persisted=len(entries) - len(failed),
            failed=[(champion, patch) for champion, patch, _ in failed],
        )
        logger.info(
            f"Flushed {records} records: {result.persisted} aggregates persisted, "
            f"{len(result.failed)} pending retry"
        )
        return result

    def score(
        self,
        player: PlayerMatchStats | dict[str, Any],
        baseline: ChampionPatchAggregate | None = None,
        history: Iterable[ChampionPatchAggregate] | None = None,
    ) -> ScoreBreakdown:
        """
        Score a player's game.

        Without an explicit baseline the pipeline's store supplies the
        player's champion+patch aggregate and the champion's other patches.
        """
        if not isinstance(player, PlayerMatchStats):
            player = self.engine.validate_player(player)

        if baseline is None and self.store is not None:
            baseline = self.store.load(player.champion_name, player.patch)
            if history is None:
                history = self.store.history(player.champion_name)

        return self.engine.score(player, baseline, history or ())

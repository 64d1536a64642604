"""
Data Models Module

Models:
    - ParticipantStatsInput / PlayerMatchStats: validated per-game input records
    - ChampionPatchAggregate / CoreAggregate: running baseline statistics
    - ScoreBreakdown: scoring output with fallback flags
    - ScoringConfig: tunable scoring constants
"""

from src.models.participant import (
    ParticipantStatsInput,
    PlayerMatchStats,
    RecordValidationError,
    ScoringInputError,
)
from src.models.aggregate import (
    ChampionPatchAggregate,
    CoreAggregate,
    RuneCounters,
    RATE_METRICS,
)
from src.models.score import (
    BaselineSource,
    BuildChoiceResult,
    FallbackFlags,
    ItemPenaltyDetail,
    MetricScore,
    ScoreBreakdown,
)
from src.models.config import ChoiceConfig, ItemsConfig, ScoringConfig

__all__ = [
    "ParticipantStatsInput",
    "PlayerMatchStats",
    "RecordValidationError",
    "ScoringInputError",
    "ChampionPatchAggregate",
    "CoreAggregate",
    "RuneCounters",
    "RATE_METRICS",
    "BaselineSource",
    "BuildChoiceResult",
    "FallbackFlags",
    "ItemPenaltyDetail",
    "MetricScore",
    "ScoreBreakdown",
    "ChoiceConfig",
    "ItemsConfig",
    "ScoringConfig",
]

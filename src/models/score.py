"""
Score Breakdown Models

Pydantic models for the scoring engine output: the composite score,
component and build sub-scores, per-metric detail and the fallback flags
that tell the presentation layer which scores rest on broader data.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class BaselineSource(str, Enum):
    """Which data level a score was computed from."""

    CORE = "core"
    CHAMPION = "champion"
    FIXED = "fixed"  # no baseline needed (optimal band, external input)
    NONE = "none"


class FallbackFlags(BaseModel):
    """Fallbacks fired while scoring one category."""

    used_fallback_patch: bool = False
    used_fallback_core: bool = False
    no_data: bool = False


class MetricScore(BaseModel):
    """Score for one performance or kda metric."""

    name: str
    score: float
    weight: float
    player_value: float | None = None
    baseline_mean: float | None = None
    baseline_stddev: float | None = None
    z_score: float | None = None
    samples: int = 0
    source: BaselineSource = BaselineSource.NONE


class ItemPenaltyDetail(BaseModel):
    """Penalty assigned to the item in one inventory slot."""

    slot: int
    item_id: int
    penalty: float = 0.0
    reason: str = "optimal"  # optimal | suboptimal | unranked | boots | no_data
    player_winrate: float | None = None  # percent
    top_winrate: float | None = None  # percent
    rank: int | None = None
    games: int = 0
    in_top_n: bool = False


class BuildChoiceResult(BaseModel):
    """Comparison of one build choice against the best option in its bucket."""

    category: str
    player_choice: str | None = None
    matched_choice: str | None = None
    player_winrate: float | None = None  # percent
    top_choice: str | None = None
    top_winrate: float | None = None  # percent
    rank: int | None = None
    total_options: int = 0
    in_top_n: bool = False
    penalty: float = 0.0
    score: float = 50.0
    games: int = 0
    confidence: float = Field(default=0.0, ge=0, le=1)
    source: BaselineSource = BaselineSource.NONE


class ScoreBreakdown(BaseModel):
    """Complete scoring result for one player's game."""

    final_score: float
    component_scores: dict[str, float] = Field(default_factory=dict)
    build_sub_scores: dict[str, float] = Field(default_factory=dict)
    metrics: list[MetricScore] = Field(default_factory=list)
    item_details: list[ItemPenaltyDetail] = Field(default_factory=list)
    choices: dict[str, BuildChoiceResult] = Field(default_factory=dict)
    fallbacks: dict[str, FallbackFlags] = Field(default_factory=dict)

    champion_name: str
    patch: str
    patch_used: str | None = None
    used_fallback_patch: bool = False
    total_games: int = 0
    core_key: str | None = None
    kill_participation: float | None = None

    def metric(self, name: str) -> MetricScore | None:
        """Look up a metric by name."""
        for metric in self.metrics:
            if metric.name == name:
                return metric
        return None

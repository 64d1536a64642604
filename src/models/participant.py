"""
Participant Data Models

Pydantic models for one player's record in one completed game: the
ingestion input folded into champion baselines, and the scoring input
compared against them. Validation happens here, at the boundary.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MAX_ITEM_SLOTS = 6


class RecordValidationError(ValueError):
    """Raised when a participant record fails boundary validation."""


class ScoringInputError(ValueError):
    """Raised when scoring input is malformed (not merely sparse)."""


class ParticipantStatsInput(BaseModel):
    """
    One participant's completed, non-remake game.

    Numeric stats are champion-game totals; per-minute rates are derived
    from ``game_duration`` (seconds).
    """

    # Identity
    champion_name: str = Field(min_length=1)
    patch: str = Field(min_length=1)  # e.g. "14.3"
    win: bool

    # Build
    items: list[int] = Field(default_factory=list, max_length=MAX_ITEM_SLOTS)
    build_order: list[int] | None = None  # chronological purchases, if known
    first_buy: str | None = None
    skill_order: str | None = None

    # Runes
    keystone_id: int = Field(ge=0)
    rune1: int = Field(ge=0)
    rune2: int = Field(ge=0)
    rune3: int = Field(ge=0)
    rune4: int = Field(ge=0)
    rune5: int = Field(ge=0)
    rune_tree_primary: int = Field(ge=0)
    rune_tree_secondary: int = Field(ge=0)
    stat_perk0: int = Field(ge=0)
    stat_perk1: int = Field(ge=0)
    stat_perk2: int = Field(ge=0)

    # Summoner spells
    spell1_id: int = Field(ge=0)
    spell2_id: int = Field(ge=0)

    # Game totals
    damage_to_champions: float = Field(ge=0, allow_inf_nan=False)
    total_damage: float = Field(ge=0, allow_inf_nan=False)
    healing: float = Field(ge=0, allow_inf_nan=False)
    shielding: float = Field(ge=0, allow_inf_nan=False)
    cc_time: float = Field(ge=0, allow_inf_nan=False)
    game_duration: float = Field(ge=0, allow_inf_nan=False)
    deaths: int = Field(ge=0)

    @field_validator("items", "build_order")
    @classmethod
    def _non_negative_item_ids(cls, value: list[int] | None) -> list[int] | None:
        if value is not None and any(item_id < 0 for item_id in value):
            raise ValueError("item ids must be non-negative (0 marks an empty slot)")
        return value

    @property
    def game_duration_minutes(self) -> float:
        return self.game_duration / 60

    @property
    def primary_runes(self) -> list[int]:
        return [self.keystone_id, self.rune1, self.rune2, self.rune3]

    @property
    def secondary_runes(self) -> list[int]:
        return [self.rune4, self.rune5]

    def per_minute_rates(self) -> dict[str, float]:
        """
        Per-minute values of the five rate metrics.

        Returns:
            Metric name to value, or an empty dict when the game has no
            positive duration (rates are then excluded, not zero)
        """
        minutes = self.game_duration_minutes
        if minutes <= 0:
            return {}
        return {
            "damage_to_champions_per_min": self.damage_to_champions / minutes,
            "total_damage_per_min": self.total_damage / minutes,
            "healing_shielding_per_min": (self.healing + self.shielding) / minutes,
            "cc_time_per_min": self.cc_time / minutes,
            "deaths_per_min": self.deaths / minutes,
        }


class PlayerMatchStats(ParticipantStatsInput):
    """A player's game to be scored against a champion baseline."""

    win: bool = False

    kills: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    team_kills: int | None = Field(default=None, ge=0)
    team_damage: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    # Computed from the kill/death timeline by an external collaborator
    death_quality: float | None = Field(default=None, ge=0, le=100)
    takedown_quality: float | None = Field(default=None, ge=0, le=100)

    @property
    def kill_participation(self) -> float | None:
        """(kills + assists) / team kills, or None without team totals."""
        if not self.team_kills:
            return None
        return (self.kills + self.assists) / self.team_kills

    @property
    def team_damage_share(self) -> float | None:
        if not self.team_damage:
            return None
        return self.damage_to_champions / self.team_damage

"""
Pytest Configuration and Fixtures

Shared fixtures for the champion baselines test suite.
"""

from typing import Any, Callable

import pytest

from src.models.config import ScoringConfig
from src.models.participant import ParticipantStatsInput, PlayerMatchStats
from src.processors.accumulator import StatsAccumulator
from src.processors.merger import AggregateMerger
from src.processors.scoring import ScoringEngine

# Ahri, 30 minute game, 0.6 deaths/min, core 6653 + Sorcerer's Shoes + 6655
BASE_RECORD: dict[str, Any] = {
    "champion_name": "Ahri",
    "patch": "14.3",
    "win": True,
    "items": [6655, 3020, 6653, 3089, 0, 0],
    "first_buy": "1056,2003",
    "skill_order": "qwe",
    "keystone_id": 8112,
    "rune1": 8139,
    "rune2": 8138,
    "rune3": 8135,
    "rune4": 8226,
    "rune5": 8210,
    "rune_tree_primary": 8100,
    "rune_tree_secondary": 8200,
    "stat_perk0": 5008,
    "stat_perk1": 5008,
    "stat_perk2": 5002,
    "spell1_id": 4,
    "spell2_id": 14,
    "damage_to_champions": 30000.0,
    "total_damage": 90000.0,
    "healing": 3000.0,
    "shielding": 0.0,
    "cc_time": 30.0,
    "game_duration": 1800.0,
    "deaths": 18,
}


@pytest.fixture
def record_data() -> Callable[..., dict[str, Any]]:
    """Factory for raw participant record mappings with field overrides."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data = dict(BASE_RECORD)
        data["items"] = list(BASE_RECORD["items"])
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_record(record_data) -> Callable[..., ParticipantStatsInput]:
    """Factory for validated participant records."""

    def _make(**overrides: Any) -> ParticipantStatsInput:
        return ParticipantStatsInput(**record_data(**overrides))

    return _make


@pytest.fixture
def make_player(record_data) -> Callable[..., PlayerMatchStats]:
    """Factory for players to score (same defaults as records)."""

    def _make(**overrides: Any) -> PlayerMatchStats:
        return PlayerMatchStats(**record_data(**overrides))

    return _make


@pytest.fixture
def config() -> ScoringConfig:
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def accumulator() -> StatsAccumulator:
    """Fresh accumulator with the default item catalog."""
    return StatsAccumulator()


@pytest.fixture
def merger() -> AggregateMerger:
    return AggregateMerger()


@pytest.fixture
def engine(config) -> ScoringEngine:
    """Scoring engine with default configuration."""
    return ScoringEngine(config)


@pytest.fixture
def ahri_item_baseline(make_record):
    """
    100 winning Ahri 14.3 games: 90 with 6653 in slot 3, 10 with 3157.

    Every record has 0.6 deaths/min.
    """
    acc = StatsAccumulator()
    for i in range(100):
        slot3 = 6653 if i < 90 else 3157
        acc.add(make_record(items=[6655, 3020, slot3, 3089, 0, 0]))
    return acc.get("Ahri", "14.3")

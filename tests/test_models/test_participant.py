"""
Tests for Participant Models

Boundary validation of ingestion and scoring input.
"""

import math

import pytest
from pydantic import ValidationError

from src.models.participant import ParticipantStatsInput, PlayerMatchStats


class TestParticipantStatsInput:
    """Tests for ParticipantStatsInput validation."""

    def test_valid_record(self, record_data):
        """Test a complete record validates."""
        record = ParticipantStatsInput(**record_data())

        assert record.champion_name == "Ahri"
        assert record.game_duration_minutes == pytest.approx(30.0)
        assert record.primary_runes == [8112, 8139, 8138, 8135]
        assert record.secondary_runes == [8226, 8210]

    @pytest.mark.parametrize(
        "field, value",
        [
            ("deaths", -1),
            ("damage_to_champions", -5.0),
            ("game_duration", -60.0),
            ("cc_time", math.nan),
            ("healing", math.inf),
            ("keystone_id", -8112),
            ("champion_name", ""),
        ],
    )
    def test_rejects_invalid_values(self, record_data, field, value):
        """Test negative, non-finite and empty values are rejected."""
        with pytest.raises(ValidationError):
            ParticipantStatsInput(**record_data(**{field: value}))

    def test_rejects_more_than_six_items(self, record_data):
        with pytest.raises(ValidationError):
            ParticipantStatsInput(**record_data(items=[1, 2, 3, 4, 5, 6, 7]))

    def test_rejects_negative_item_ids(self, record_data):
        """Test negative ids in items or build order are rejected."""
        with pytest.raises(ValidationError):
            ParticipantStatsInput(**record_data(items=[6653, -1, 0, 0, 0, 0]))
        with pytest.raises(ValidationError):
            ParticipantStatsInput(**record_data(build_order=[1056, -3020]))

    def test_missing_required_field(self, record_data):
        data = record_data()
        del data["win"]
        with pytest.raises(ValidationError):
            ParticipantStatsInput(**data)

    def test_per_minute_rates(self, make_record):
        """Test rates divide totals by game minutes."""
        rates = make_record(shielding=600.0).per_minute_rates()

        assert rates["healing_shielding_per_min"] == pytest.approx(120.0)
        assert rates["deaths_per_min"] == pytest.approx(0.6)
        assert len(rates) == 5

    def test_zero_duration_has_no_rates(self, make_record):
        """Test zero-length games produce no rates instead of dividing by zero."""
        assert make_record(game_duration=0.0).per_minute_rates() == {}


class TestPlayerMatchStats:
    """Tests for the scoring input model."""

    def test_kill_participation(self, make_player):
        player = make_player(kills=4, assists=6, team_kills=25)
        assert player.kill_participation == pytest.approx(0.4)

    def test_kill_participation_without_team_kills(self, make_player):
        """Test missing or zero team kills gives no kill participation."""
        assert make_player(kills=4).kill_participation is None
        assert make_player(kills=0, team_kills=0).kill_participation is None

    def test_team_damage_share(self, make_player):
        player = make_player(team_damage=100000.0)
        assert player.team_damage_share == pytest.approx(0.3)
        assert make_player().team_damage_share is None

    def test_quality_range(self, make_player):
        """Test timeline qualities are bounded to 0-100."""
        with pytest.raises(ValidationError):
            make_player(death_quality=120.0)

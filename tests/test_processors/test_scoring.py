"""
Tests for Scoring Engine

Performance standardization, build comparisons, the fallback chain and
input validation.
"""

import pytest

from src.models.aggregate import ChampionPatchAggregate
from src.models.participant import ScoringInputError
from src.models.score import BaselineSource
from src.processors.accumulator import StatsAccumulator
from src.processors.scoring import BUILD_CATEGORIES


def patch_aggregate(make_record, patch: str, count: int) -> ChampionPatchAggregate:
    acc = StatsAccumulator()
    for _ in range(count):
        acc.add(make_record(patch=patch))
    return acc.get("Ahri", patch)


class TestPerformance:
    """Tests for rate metric scoring."""

    def test_average_player_scores_average(self, engine, make_player, ahri_item_baseline):
        """Test matching the baseline mean scores the average anchor."""
        breakdown = engine.score(make_player(), ahri_item_baseline)

        damage = breakdown.metric("damage_to_champions_per_min")
        assert damage.score == pytest.approx(70.0)
        assert damage.source == BaselineSource.CORE
        assert damage.samples == 90

    def test_double_damage_scores_elite(self, engine, make_player, ahri_item_baseline):
        """Test far above average damage is clamped at 100."""
        breakdown = engine.score(make_player(damage_to_champions=60000.0), ahri_item_baseline)
        assert breakdown.metric("damage_to_champions_per_min").score == pytest.approx(100.0)

    def test_low_healing_champion_ignores_healing(self, engine, make_player, ahri_item_baseline):
        """Test healing is not scored when the champion barely heals."""
        breakdown = engine.score(make_player(), ahri_item_baseline)
        assert breakdown.metric("healing_shielding_per_min") is None

    def test_low_cc_uses_ratio(self, engine, make_player, ahri_item_baseline):
        """Test low-CC champions are scored proportionally."""
        breakdown = engine.score(make_player(), ahri_item_baseline)

        cc = breakdown.metric("cc_time_per_min")
        assert cc.z_score is None
        assert cc.score == pytest.approx(100.0)
        assert 0 < cc.weight < 1

    def test_deaths_in_optimal_band(self, engine, make_player, ahri_item_baseline):
        """Test 0.6 deaths per minute scores 100."""
        breakdown = engine.score(make_player(), ahri_item_baseline)

        deaths = breakdown.metric("deaths_per_min")
        assert deaths.player_value == pytest.approx(0.6)
        assert deaths.score == pytest.approx(100.0)
        assert deaths.source == BaselineSource.FIXED

    def test_short_game_lowers_expectation(self, engine, make_player, ahri_item_baseline):
        """Test a ten minute game is held to a reduced expectation."""
        breakdown = engine.score(
            make_player(damage_to_champions=10000.0, game_duration=600.0), ahri_item_baseline
        )
        assert breakdown.metric("damage_to_champions_per_min").score > 70.0

    def test_damage_share_rescues_low_damage(self, engine, make_player, ahri_item_baseline):
        """Test a high team damage share lifts a low raw damage score."""
        low = engine.score(make_player(damage_to_champions=15000.0), ahri_item_baseline)
        shared = engine.score(
            make_player(damage_to_champions=15000.0, team_damage=50000.0), ahri_item_baseline
        )

        assert low.metric("damage_to_champions_per_min").score == pytest.approx(10.0)
        assert shared.metric("damage_to_champions_per_min").score == pytest.approx(55.0)


class TestBuild:
    """Tests for build category scoring."""

    def test_popular_item_beats_rare_item(self, engine, make_player, ahri_item_baseline):
        """Test the common slot 3 item outscores the rare one."""
        common = engine.score(make_player(), ahri_item_baseline)
        rare = engine.score(
            make_player(items=[6655, 3020, 3157, 3089, 0, 0]), ahri_item_baseline
        )

        assert common.build_sub_scores["items"] == pytest.approx(100.0)
        assert rare.build_sub_scores["items"] == pytest.approx(75.0)
        assert not common.fallbacks["items"].used_fallback_core
        assert rare.fallbacks["items"].used_fallback_core

        slot3 = next(d for d in rare.item_details if d.slot == 3)
        assert slot3.reason == "unranked"
        assert slot3.games == 10

    def test_rare_core_uses_family(self, engine, make_player, ahri_item_baseline):
        """Test a rare core is judged by similar cores."""
        breakdown = engine.score(
            make_player(items=[6655, 3020, 3157, 3089, 0, 0]), ahri_item_baseline
        )

        assert breakdown.core_key == "3157_6655_99999"
        assert breakdown.fallbacks["core"].used_fallback_core
        assert breakdown.choices["core"].games == 100

    def test_keystone_choice(self, engine, make_player, ahri_item_baseline):
        """Test the usual keystone scores 100 and an unseen one is penalized."""
        usual = engine.score(make_player(), ahri_item_baseline)
        unseen = engine.score(make_player(keystone_id=8128), ahri_item_baseline)

        assert usual.build_sub_scores["keystone"] == pytest.approx(100.0)
        assert usual.choices["keystone"].source == BaselineSource.CORE
        assert unseen.build_sub_scores["keystone"] == pytest.approx(50.0)
        assert unseen.choices["keystone"].rank is None

    def test_spell_order_does_not_matter(self, engine, make_player, ahri_item_baseline):
        """Test Ignite+Flash matches the Flash+Ignite bucket."""
        breakdown = engine.score(make_player(spell1_id=14, spell2_id=4), ahri_item_baseline)
        assert breakdown.choices["spells"].player_choice == "4_14"
        assert breakdown.build_sub_scores["spells"] == pytest.approx(100.0)


class TestKdaAndTimeline:
    """Tests for the kda and timeline components."""

    def test_kill_participation(self, engine, make_player, ahri_item_baseline):
        """Test 90% kill participation hits the cap."""
        breakdown = engine.score(
            make_player(kills=9, assists=9, team_kills=20), ahri_item_baseline
        )

        assert breakdown.kill_participation == pytest.approx(0.9)
        assert breakdown.metric("kill_participation").score == pytest.approx(100.0)
        assert breakdown.component_scores["kda"] == pytest.approx(100.0)

    def test_timeline_averages_qualities(self, engine, make_player, ahri_item_baseline):
        """Test timeline is the mean of the supplied qualities."""
        breakdown = engine.score(
            make_player(death_quality=80.0, takedown_quality=60.0), ahri_item_baseline
        )
        assert breakdown.component_scores["timeline"] == pytest.approx(70.0)
        assert not breakdown.fallbacks["timeline"].no_data

    def test_missing_timeline_is_neutral(self, engine, make_player, ahri_item_baseline):
        breakdown = engine.score(make_player(), ahri_item_baseline)
        assert breakdown.component_scores["timeline"] == 50.0
        assert breakdown.fallbacks["timeline"].no_data


class TestFallbackChain:
    """Tests for patch fallback and neutral scoring."""

    def test_empty_baseline_is_neutral(self, engine, make_player):
        """Test a champion with no games gets neutral build and performance."""
        empty = ChampionPatchAggregate(champion_name="Ahri", patch="14.3")
        breakdown = engine.score(make_player(), empty)

        assert breakdown.patch_used is None
        assert breakdown.total_games == 0
        assert breakdown.component_scores["performance"] == 50.0
        assert breakdown.component_scores["build"] == 50.0
        for category in BUILD_CATEGORIES:
            flags = breakdown.fallbacks[category]
            assert breakdown.build_sub_scores[category] == 50.0
            assert flags.no_data and flags.used_fallback_core and flags.used_fallback_patch
        assert breakdown.fallbacks["performance"].no_data
        assert 0.0 <= breakdown.final_score <= 100.0

    def test_no_baseline_at_all(self, engine, make_player):
        """Test scoring without any aggregate does not raise."""
        breakdown = engine.score(make_player(), None)
        assert breakdown.used_fallback_patch
        assert breakdown.component_scores["build"] == 50.0

    def test_prior_patch_fallback(self, engine, make_player, make_record):
        """Test a thin patch falls back to the nearest prior patch with enough games."""
        current = patch_aggregate(make_record, "14.3", 5)
        history = [
            patch_aggregate(make_record, "14.1", 150),
            patch_aggregate(make_record, "14.2", 100),
            patch_aggregate(make_record, "14.4", 300),
        ]

        breakdown = engine.score(make_player(), current, history)

        assert breakdown.patch == "14.3"
        assert breakdown.patch_used == "14.2"
        assert breakdown.used_fallback_patch
        assert breakdown.total_games == 100
        assert breakdown.fallbacks["items"].used_fallback_patch

    def test_thin_patch_without_history(self, engine, make_player, make_record):
        """Test the thin current patch is still used when nothing older qualifies."""
        current = patch_aggregate(make_record, "14.3", 5)
        breakdown = engine.score(make_player(), current, [patch_aggregate(make_record, "14.2", 20)])

        assert breakdown.patch_used == "14.3"
        assert breakdown.used_fallback_patch

    def test_enough_games_uses_own_patch(self, engine, make_player, ahri_item_baseline, make_record):
        breakdown = engine.score(
            make_player(), ahri_item_baseline, [patch_aggregate(make_record, "14.2", 500)]
        )
        assert breakdown.patch_used == "14.3"
        assert not breakdown.used_fallback_patch


class TestInputValidation:
    """Tests for malformed versus sparse input."""

    def test_dict_input_is_validated(self, engine, record_data, ahri_item_baseline):
        breakdown = engine.score(record_data(), ahri_item_baseline)
        assert breakdown.champion_name == "Ahri"

    def test_malformed_dict_raises(self, engine, record_data, ahri_item_baseline):
        """Test missing fields and negative values are rejected."""
        with pytest.raises(ScoringInputError):
            engine.score({"champion_name": "Ahri"}, ahri_item_baseline)
        with pytest.raises(ScoringInputError):
            engine.score(record_data(game_duration=-60.0), ahri_item_baseline)

    def test_champion_mismatch_raises(self, engine, make_player, ahri_item_baseline):
        with pytest.raises(ScoringInputError):
            engine.score(make_player(champion_name="Lux"), ahri_item_baseline)

    def test_zero_duration_is_sparse_not_malformed(self, engine, make_player, ahri_item_baseline):
        """Test a zero-length game scores without rate metrics."""
        breakdown = engine.score(make_player(game_duration=0.0), ahri_item_baseline)

        assert breakdown.metric("deaths_per_min") is None
        assert breakdown.fallbacks["performance"].no_data
        assert breakdown.component_scores["performance"] == 50.0
        assert breakdown.build_sub_scores["items"] == pytest.approx(100.0)

"""
Tests for Scoring Curves Module

Calibration anchors, the deaths band, kill participation and the helper
curves used by build scoring.
"""

import pytest

from src.analytics import curves
from src.models.config import (
    CalibrationConfig,
    DamageShareConfig,
    DeathsConfig,
    KillParticipationConfig,
    RelevanceConfig,
)


class TestZToScore:
    """Tests for the z-score calibration curve."""

    def test_average_maps_to_seventy(self):
        """Test z = 0 maps to the average anchor."""
        assert curves.z_to_score(0.0, CalibrationConfig()) == pytest.approx(70.0)

    def test_one_sd_maps_to_hundred(self):
        """Test mean + 1 sd maps to the elite anchor."""
        assert curves.z_to_score(1.0, CalibrationConfig()) == pytest.approx(100.0)

    def test_monotonic_and_clamped(self):
        """Test the curve is increasing and clamped to [0, 100]."""
        cal = CalibrationConfig()
        scores = [curves.z_to_score(z, cal) for z in (-4.0, -1.0, 0.0, 0.5, 3.0)]
        assert scores == sorted(scores)
        assert scores[0] == 0.0
        assert scores[-1] == 100.0

    def test_custom_anchor(self):
        """Test a different elite z changes the slope."""
        cal = CalibrationConfig(elite_z=2.0)
        assert curves.z_to_score(1.0, cal) == pytest.approx(85.0)


class TestRatioFallback:
    """Tests for the ratio z approximation."""

    def test_ratio_z(self):
        """Test 25% above the mean is one pseudo standard deviation."""
        assert curves.ratio_z(1250.0, 1000.0) == pytest.approx(1.0)
        assert curves.ratio_z(1000.0, 1000.0) == pytest.approx(0.0)

    def test_ratio_z_zero_mean(self):
        """Test a zero mean gives a neutral z."""
        assert curves.ratio_z(10.0, 0.0) == 0.0

    def test_short_game_factor(self):
        """Test expectations shrink for games under the threshold."""
        assert curves.short_game_factor(30.0, 15.0) == 1.0
        assert curves.short_game_factor(15.0, 15.0) == 1.0
        assert curves.short_game_factor(7.5, 15.0) == pytest.approx(0.5 ** 0.5)


class TestDeathsScore:
    """Tests for the deaths optimal band."""

    def test_inside_band_is_perfect(self):
        """Test every value in the band scores 100."""
        cfg = DeathsConfig()
        for value in (0.5, 0.6, 0.7):
            assert curves.deaths_score(value, cfg) == 100.0

    def test_too_few_deaths(self):
        """Test 200 points lost per death/min below the band."""
        assert curves.deaths_score(0.3, DeathsConfig()) == pytest.approx(60.0)
        assert curves.deaths_score(0.0, DeathsConfig()) == pytest.approx(0.0)

    def test_too_many_deaths(self):
        """Test 120 points lost per death/min above the band."""
        assert curves.deaths_score(0.9, DeathsConfig()) == pytest.approx(76.0)

    def test_death_quality_reduces_penalty(self):
        """Test good deaths recover part of the penalty."""
        cfg = DeathsConfig()
        plain = curves.deaths_score(1.2, cfg)
        with_quality = curves.deaths_score(1.2, cfg, death_quality=80)
        below_threshold = curves.deaths_score(1.2, cfg, death_quality=50)

        assert with_quality > plain
        assert below_threshold == plain
        # penalty 60, reduced by 20%
        assert with_quality == pytest.approx(100 - 60 + 12)


class TestKillParticipation:
    """Tests for the kill participation curve."""

    def test_cap_scores_hundred(self):
        """Test reaching the cap scores 100."""
        cfg = KillParticipationConfig()
        assert curves.kill_participation_score(0.9, cfg) == pytest.approx(100.0)
        assert curves.kill_participation_score(1.0, cfg) == pytest.approx(100.0)

    def test_power_curve(self):
        """Test the curve below the cap."""
        cfg = KillParticipationConfig()
        expected = 100 * (0.45 / 0.9) ** 0.9
        assert curves.kill_participation_score(0.45, cfg) == pytest.approx(expected)
        assert curves.kill_participation_score(0.0, cfg) == 0.0


class TestDamageShare:
    """Tests for team damage share mitigation."""

    def test_share_score_range(self):
        """Test 10% share scores 0 and 30% scores 100."""
        cfg = DamageShareConfig()
        assert curves.damage_share_score(0.10, cfg) == pytest.approx(0.0)
        assert curves.damage_share_score(0.20, cfg) == pytest.approx(50.0)
        assert curves.damage_share_score(0.35, cfg) == pytest.approx(100.0)

    def test_blend_lifts_low_score(self):
        """Test a low damage score is blended toward a high share."""
        cfg = DamageShareConfig()
        assert curves.blend_damage_share(40.0, 0.30, cfg, 70.0) == pytest.approx(70.0)

    def test_blend_never_lowers(self):
        """Test blending keeps the raw score when it is better."""
        cfg = DamageShareConfig()
        assert curves.blend_damage_share(40.0, 0.05, cfg, 70.0) == 40.0
        assert curves.blend_damage_share(85.0, 0.30, cfg, 70.0) == 85.0
        assert curves.blend_damage_share(40.0, None, cfg, 70.0) == 40.0


class TestRelevance:
    """Tests for metric relevance weights."""

    def test_healing_relevance(self):
        """Test non-healers get zero weight and healers ramp to 1."""
        cfg = RelevanceConfig()
        assert curves.healing_relevance(100.0, cfg) == 0.0
        assert curves.healing_relevance(300.0, cfg) == pytest.approx(0.5)
        assert curves.healing_relevance(5000.0, cfg) == 1.0

    def test_cc_relevance(self):
        """Test CC weight grows with the champion's average CC."""
        cfg = RelevanceConfig()
        assert curves.cc_relevance(0.5, cfg) == 0.0
        assert curves.cc_relevance(2.0, cfg) == pytest.approx(0.5)
        assert curves.cc_relevance(20.0, cfg) == 1.0


class TestBuildHelpers:
    """Tests for Wilson bound, confidence and penalty conversion."""

    def test_wilson_prefers_larger_samples(self):
        """Test a perfect tiny sample ranks below a strong large sample."""
        assert curves.wilson_lower_bound(3, 3) < curves.wilson_lower_bound(300, 500)

    def test_wilson_zero_games(self):
        """Test zero games has a zero bound."""
        assert curves.wilson_lower_bound(0, 0) == 0.0

    def test_sample_confidence(self):
        """Test confidence anchors at 10 and 30 games."""
        assert curves.sample_confidence(0) == 0.0
        assert curves.sample_confidence(5) == pytest.approx(0.25)
        assert curves.sample_confidence(10) == pytest.approx(0.5)
        assert curves.sample_confidence(20) == pytest.approx(0.75)
        assert curves.sample_confidence(30) == 1.0
        assert curves.sample_confidence(500) == 1.0

    def test_penalty_to_score(self):
        """Test penalty conversion and clamping."""
        assert curves.penalty_to_score(0.0, 20.0) == 100.0
        assert curves.penalty_to_score(5.0, 20.0) == pytest.approx(75.0)
        assert curves.penalty_to_score(40.0, 20.0) == 0.0

    def test_weighted_score_redistributes_missing(self):
        """Test weights of missing scores are spread over present ones."""
        weights = {"a": 0.5, "b": 0.25, "c": 0.25}
        assert curves.weighted_score({"a": 80.0, "b": 40.0}, weights) == pytest.approx(
            (80 * 0.5 + 40 * 0.25) / 0.75
        )
        assert curves.weighted_score({}, weights) is None

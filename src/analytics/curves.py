"""
Scoring Curves Module

Pure numeric mappings from raw quantities to 0-100 scores:
- Linear z-score calibration (average -> 70, mean + 1 sd -> 100)
- Ratio fallback for thin or flat distributions
- Deaths-per-minute optimal band
- Kill participation power curve
- Team damage share mitigation
- Wilson lower bound and sample confidence for build choices
"""

from __future__ import annotations

import math
from typing import Mapping

import numpy as np

from src.models.config import (
    CalibrationConfig,
    DamageShareConfig,
    DeathsConfig,
    KillParticipationConfig,
    RelevanceConfig,
)

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(score: float) -> float:
    """Clamp to the 0-100 score range."""
    return float(np.clip(score, SCORE_MIN, SCORE_MAX))


def z_to_score(z: float, calibration: CalibrationConfig) -> float:
    """
    Map a z-score onto the 0-100 metric scale.

    The curve is linear through (0, average_score) and
    (elite_z, elite_score), clamped to [0, 100].

    Args:
        z: Standardized value (higher is better)
        calibration: Calibration anchors

    Returns:
        Metric score
    """
    slope = (calibration.elite_score - calibration.average_score) / calibration.elite_z
    return clamp_score(calibration.average_score + z * slope)


def ratio_z(value: float, mean: float, relative_stddev: float = 0.25) -> float:
    """
    Approximate z-score assuming stddev is a fixed fraction of the mean.

    Used when too few samples exist or the observed spread is degenerate.
    """
    if mean <= 0:
        return 0.0
    return (value / mean - 1.0) / relative_stddev


def short_game_factor(game_minutes: float, short_game_minutes: float) -> float:
    """Expectation scale for short games: ``(minutes / threshold) ** 0.5``."""
    if short_game_minutes <= 0 or game_minutes <= 0 or game_minutes >= short_game_minutes:
        return 1.0
    return math.sqrt(game_minutes / short_game_minutes)


def deaths_score(
    deaths_per_min: float,
    config: DeathsConfig,
    death_quality: float | None = None,
) -> float:
    """
    Score deaths per minute against the optimal band.

    Inside the band scores 100. Too few deaths (holding gold, never
    resetting) and too many deaths both lose points linearly; the
    excess-death penalty is reduced when the externally computed death
    quality shows the deaths were trades rather than throws.

    Args:
        deaths_per_min: Player deaths per minute
        config: Band and penalty constants
        death_quality: Optional 0-100 death quality

    Returns:
        Deaths score
    """
    if config.optimal_min <= deaths_per_min <= config.optimal_max:
        return SCORE_MAX

    if deaths_per_min < config.optimal_min:
        return clamp_score(
            SCORE_MAX - (config.optimal_min - deaths_per_min) * config.low_penalty_per_unit
        )

    base_penalty = (deaths_per_min - config.optimal_max) * config.high_penalty_per_unit
    reduction = 0.0
    if death_quality is not None and death_quality >= config.quality_threshold:
        fraction = min(config.max_quality_reduction, (death_quality - config.quality_threshold) / 100)
        reduction = base_penalty * fraction
    return clamp_score(SCORE_MAX - base_penalty + reduction)


def kill_participation_score(kill_participation: float, config: KillParticipationConfig) -> float:
    """``100 * (min(kp, cap) / cap) ** exponent``."""
    capped = min(max(kill_participation, 0.0), config.cap)
    return clamp_score(SCORE_MAX * (capped / config.cap) ** config.exponent)


def ratio_score(value: float, mean: float) -> float:
    """Proportional score where reaching the average already scores 100."""
    if mean <= 0:
        return SCORE_MAX
    return clamp_score(SCORE_MAX * value / mean)


def damage_share_score(share: float, config: DamageShareConfig) -> float:
    """Linear score of team damage share between ``floor`` and ``ceiling``."""
    span = config.ceiling - config.floor
    if span <= 0:
        return SCORE_MAX if share >= config.ceiling else SCORE_MIN
    return clamp_score((share - config.floor) / span * SCORE_MAX)


def blend_damage_share(
    raw_score: float,
    share: float | None,
    config: DamageShareConfig,
    average_score: float,
) -> float:
    """
    Lift a below-average damage score toward the team damage share score.

    Returns ``raw_score`` unchanged when no share is known, the raw score
    is already at or above average, or blending would lower it.
    """
    if share is None or raw_score >= average_score:
        return raw_score
    blended = raw_score * (1 - config.blend) + damage_share_score(share, config) * config.blend
    return max(raw_score, blended)


def healing_relevance(avg_per_min: float, config: RelevanceConfig) -> float:
    """Weight of healing+shielding for a champion (0 for non-healers)."""
    if avg_per_min < config.healing_threshold:
        return 0.0
    return min(1.0, 0.5 + (avg_per_min - config.healing_threshold) / config.healing_span)


def cc_relevance(avg_per_min: float, config: RelevanceConfig) -> float:
    """Weight of CC time for a champion (0 for champions without reliable CC)."""
    if avg_per_min < config.cc_threshold:
        return 0.0
    return min(1.0, 0.5 + (avg_per_min - config.cc_pivot) / config.cc_span)


def wilson_lower_bound(wins: int, games: int, z: float = 1.96) -> float:
    """
    Lower bound of the Wilson score interval for a winrate.

    Ranks choices by how confidently good they are rather than raw
    winrate, so a 3-0 build does not outrank a 60% build over 500 games.
    """
    if games <= 0:
        return 0.0
    p = wins / games
    z2 = z * z
    denominator = 1 + z2 / games
    centre = p + z2 / (2 * games)
    margin = z * math.sqrt((p * (1 - p) + z2 / (4 * games)) / games)
    return (centre - margin) / denominator


def sample_confidence(games: int) -> float:
    """
    Confidence in a choice statistic from its sample size.

    0 games -> 0, 10 games -> 0.5, 30 or more games -> 1.0, linear in between.
    """
    if games <= 0:
        return 0.0
    if games < 10:
        return games / 10 * 0.5
    if games < 30:
        return 0.5 + (games - 10) / 20 * 0.5
    return 1.0


def penalty_to_score(penalty: float, max_penalty: float) -> float:
    """``100 * (1 - penalty / max_penalty)`` clamped to [0, 100]."""
    if max_penalty <= 0:
        return SCORE_MAX
    return clamp_score(SCORE_MAX * (1 - penalty / max_penalty))


def weighted_score(scores: Mapping[str, float], weights: Mapping[str, float]) -> float | None:
    """
    Weighted mean of the scores that are present.

    Weights of missing scores are redistributed over the remaining ones.

    Returns:
        Weighted mean, or None when no weighted score is available
    """
    keys = [k for k in scores if weights.get(k, 0.0) > 0]
    if not keys:
        return None
    values = np.array([scores[k] for k in keys], dtype=float)
    w = np.array([weights[k] for k in keys], dtype=float)
    return float(np.average(values, weights=w))

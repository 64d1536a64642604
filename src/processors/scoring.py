"""
Scoring Engine

Turns one player's game plus the champion+patch baseline into calibrated
0-100 sub-scores and a weighted composite:
- performance: per-minute rate metrics standardized against the baseline
- build: items, core build, keystone, starting items, skill order, spells
- timeline: externally computed death/takedown quality
- kda: kill participation and death frequency

Sparse data never raises. Each category degrades through the fallback
chain (core -> champion, patch -> nearest prior patch, then neutral) and
reports which fallbacks fired.
"""

from __future__ import annotations

import math
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from src.analytics import curves
from src.analytics.counters import CategoricalCounter
from src.analytics.moments import RateMomentAccumulator
from src.models.aggregate import ChampionPatchAggregate, CoreAggregate
from src.models.config import ScoringConfig
from src.models.participant import PlayerMatchStats, ScoringInputError
from src.models.score import (
    BaselineSource,
    BuildChoiceResult,
    FallbackFlags,
    ItemPenaltyDetail,
    MetricScore,
    ScoreBreakdown,
)
from src.processors.build_keys import ComboKeyNormalizer, normalize_starting_key, spell_pair_key
from src.processors.build_scoring import neutral_choice, score_choice, score_core, score_items
from src.processors.patches import prior_patches

PERFORMANCE_METRICS = (
    "damage_to_champions_per_min",
    "total_damage_per_min",
    "healing_shielding_per_min",
    "cc_time_per_min",
)
DEATHS_METRIC = "deaths_per_min"

CHOICE_CATEGORIES = ("keystone", "spells", "skills", "starting")
BUILD_CATEGORIES = ("items", "core") + CHOICE_CATEGORIES


class ScoringEngine:
    """
    Pure scorer of player games against persisted baselines.

    Holds only configuration, so one engine can serve many concurrent
    readers of the same immutable aggregates.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        normalizer: ComboKeyNormalizer | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Scoring constants (defaults if omitted)
            normalizer: Core build key normalizer, matching the accumulator's
        """
        self.config = config or ScoringConfig()
        self.normalizer = normalizer or ComboKeyNormalizer()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def score(
        self,
        player: PlayerMatchStats | dict[str, Any],
        baseline: ChampionPatchAggregate | None,
        history: Iterable[ChampionPatchAggregate] = (),
    ) -> ScoreBreakdown:
        """
        Score one player's game.

        Args:
            player: The player's stats for one game
            baseline: Aggregate for the player's champion and patch (may be
                None or empty)
            history: Aggregates of other patches for the same champion, used
                when the baseline has too few games

        Returns:
            Composite score with per-category breakdown and fallback flags

        Raises:
            ScoringInputError: If the player input is malformed
        """
        player = self.validate_player(player)
        if baseline is not None and baseline.champion_name and (
            baseline.champion_name != player.champion_name
        ):
            raise ScoringInputError(
                f"Baseline is for {baseline.champion_name}, player played {player.champion_name}"
            )

        neutral = self.config.calibration.neutral_score
        aggregate, used_fallback_patch = self._resolve_baseline(player, baseline, history)

        core_key = self._core_key(player)
        core_sub = aggregate.core.get(core_key) if aggregate is not None and core_key else None

        fallbacks: dict[str, FallbackFlags] = {}

        metrics = self._performance_metrics(player, aggregate, core_sub)
        performance = curves.weighted_score(
            {m.name: m.score for m in metrics}, {m.name: m.weight for m in metrics}
        )
        fallbacks["performance"] = FallbackFlags(
            used_fallback_patch=used_fallback_patch,
            used_fallback_core=not any(m.source == BaselineSource.CORE for m in metrics),
            no_data=performance is None,
        )

        deaths_metric = self._deaths_metric(player, aggregate)
        if deaths_metric is not None:
            metrics.append(deaths_metric)
            if performance is not None:
                performance = curves.weighted_score(
                    {m.name: m.score for m in metrics}, {m.name: m.weight for m in metrics}
                )

        timeline, timeline_flags = self._timeline_score(player)
        fallbacks["timeline"] = timeline_flags

        kda, kda_metrics = self._kda_score(player, deaths_metric)
        fallbacks["kda"] = FallbackFlags(no_data=kda is None)

        build_scores, item_details, choices = self._build_scores(
            player, aggregate, core_key, core_sub, used_fallback_patch, fallbacks
        )
        build = curves.weighted_score(build_scores, self.config.build_weights)

        components = {
            "performance": performance if performance is not None else neutral,
            "build": build if build is not None else neutral,
            "timeline": timeline if timeline is not None else neutral,
            "kda": kda if kda is not None else neutral,
        }
        final = curves.weighted_score(components, self.config.final_weights)

        breakdown = ScoreBreakdown(
            final_score=round(final if final is not None else neutral, 1),
            component_scores={k: round(v, 1) for k, v in components.items()},
            build_sub_scores={k: round(v, 1) for k, v in build_scores.items()},
            metrics=metrics + kda_metrics,
            item_details=item_details,
            choices=choices,
            fallbacks=fallbacks,
            champion_name=player.champion_name,
            patch=player.patch,
            patch_used=aggregate.patch if aggregate is not None else None,
            used_fallback_patch=used_fallback_patch,
            total_games=aggregate.games if aggregate is not None else 0,
            core_key=core_key,
            kill_participation=player.kill_participation,
        )
        logger.debug(
            f"Scored {player.champion_name} {player.patch}: {breakdown.final_score} "
            f"(baseline {breakdown.patch_used}, {breakdown.total_games} games)"
        )
        return breakdown

    @staticmethod
    def validate_player(player: PlayerMatchStats | dict[str, Any]) -> PlayerMatchStats:
        if isinstance(player, dict):
            try:
                return PlayerMatchStats.model_validate(player)
            except ValidationError as e:
                raise ScoringInputError(f"Invalid player input: {e}") from e

        duration = player.game_duration
        if not math.isfinite(duration) or duration < 0:
            raise ScoringInputError(f"Invalid game duration: {duration}")
        return player

    # ------------------------------------------------------------------
    # Fallback chain
    # ------------------------------------------------------------------

    def _resolve_baseline(
        self,
        player: PlayerMatchStats,
        baseline: ChampionPatchAggregate | None,
        history: Iterable[ChampionPatchAggregate],
    ) -> tuple[ChampionPatchAggregate | None, bool]:
        """
        Pick the aggregate to score against.

        Returns:
            (aggregate or None, whether the player's own patch had too few games)
        """
        min_total = self.config.fallback.min_total_games
        if baseline is not None and baseline.games >= min_total:
            return baseline, False

        by_patch = {
            agg.patch: agg
            for agg in history
            if agg.patch and agg.champion_name in ("", player.champion_name)
        }
        older = [by_patch[p] for p in prior_patches(player.patch, by_patch)]

        for candidate in older:
            if candidate.games >= min_total:
                logger.debug(
                    f"{player.champion_name} {player.patch} has too few games, "
                    f"using patch {candidate.patch}"
                )
                return candidate, True

        if baseline is not None and baseline.games > 0:
            return baseline, True
        for candidate in older:
            if candidate.games > 0:
                return candidate, True
        return None, True

    def _core_key(self, player: PlayerMatchStats) -> str | None:
        if player.build_order:
            return self.normalizer.core_key(player.build_order, player.items)
        return self.normalizer.core_key(player.items)

    def _core_trusted(self, core_sub: CoreAggregate | None) -> bool:
        return core_sub is not None and core_sub.games >= self.config.fallback.min_core_games

    # ------------------------------------------------------------------
    # Performance
    # ------------------------------------------------------------------

    def _rate_source(
        self,
        metric: str,
        aggregate: ChampionPatchAggregate,
        core_sub: CoreAggregate | None,
    ) -> tuple[RateMomentAccumulator, BaselineSource]:
        if self._core_trusted(core_sub):
            core_acc = core_sub.rate(metric)
            if core_acc.n >= self.config.rates.min_rate_samples:
                return core_acc, BaselineSource.CORE
        return aggregate.rates.get(metric, RateMomentAccumulator()), BaselineSource.CHAMPION

    def _standardize(self, value: float, acc: RateMomentAccumulator, factor: float) -> float:
        """z-score of ``value`` against ``acc``, with the ratio fallback for thin data."""
        rates = self.config.rates
        expected = acc.mean * factor
        stddev = acc.stddev
        if acc.n < rates.min_rate_samples or stddev <= rates.min_stddev_ratio * acc.mean:
            return curves.ratio_z(value, expected, rates.fallback_relative_stddev)
        return (value - expected) / stddev

    def _performance_metrics(
        self,
        player: PlayerMatchStats,
        aggregate: ChampionPatchAggregate | None,
        core_sub: CoreAggregate | None,
    ) -> list[MetricScore]:
        rates = player.per_minute_rates()
        if aggregate is None or not rates:
            return []

        cfg = self.config
        factor = curves.short_game_factor(player.game_duration_minutes, cfg.rates.short_game_minutes)
        metrics: list[MetricScore] = []

        for name in PERFORMANCE_METRICS:
            acc, source = self._rate_source(name, aggregate, core_sub)
            if acc.n == 0:
                continue

            value = rates[name]
            weight = self._relevance(name, acc.mean)
            if weight <= 0:
                continue

            z: float | None
            if name == "cc_time_per_min" and acc.mean < cfg.cc_time.ratio_below:
                z = None
                score = curves.ratio_score(value, acc.mean * factor)
            else:
                z = self._standardize(value, acc, factor)
                score = curves.z_to_score(z, cfg.calibration)

            if name == "damage_to_champions_per_min":
                score = curves.blend_damage_share(
                    score, player.team_damage_share, cfg.damage_share, cfg.calibration.average_score
                )

            metrics.append(
                MetricScore(
                    name=name,
                    score=round(score, 2),
                    weight=weight,
                    player_value=value,
                    baseline_mean=acc.mean,
                    baseline_stddev=acc.stddev,
                    z_score=z,
                    samples=acc.n,
                    source=source,
                )
            )
        return metrics

    def _relevance(self, metric: str, mean: float) -> float:
        relevance = self.config.relevance
        if metric == "damage_to_champions_per_min":
            return relevance.damage_to_champions
        if metric == "total_damage_per_min":
            return relevance.total_damage
        if metric == "healing_shielding_per_min":
            return curves.healing_relevance(mean, relevance)
        if metric == "cc_time_per_min":
            if mean < self.config.cc_time.ignore_below:
                return 0.0
            return curves.cc_relevance(mean, relevance)
        return 0.0

    def _deaths_metric(
        self, player: PlayerMatchStats, aggregate: ChampionPatchAggregate | None
    ) -> MetricScore | None:
        rates = player.per_minute_rates()
        if not rates:
            return None
        value = rates[DEATHS_METRIC]
        acc = aggregate.rates.get(DEATHS_METRIC) if aggregate is not None else None
        return MetricScore(
            name=DEATHS_METRIC,
            score=curves.deaths_score(value, self.config.deaths, player.death_quality),
            weight=self.config.relevance.deaths,
            player_value=value,
            baseline_mean=acc.mean if acc is not None and acc.n else None,
            baseline_stddev=acc.stddev if acc is not None and acc.n else None,
            samples=acc.n if acc is not None else 0,
            source=BaselineSource.FIXED,
        )

    # ------------------------------------------------------------------
    # Timeline and KDA
    # ------------------------------------------------------------------

    @staticmethod
    def _timeline_score(player: PlayerMatchStats) -> tuple[float | None, FallbackFlags]:
        values = [
            v for v in (player.death_quality, player.takedown_quality) if v is not None
        ]
        if not values:
            return None, FallbackFlags(no_data=True)
        return sum(values) / len(values), FallbackFlags()

    def _kda_score(
        self, player: PlayerMatchStats, deaths_metric: MetricScore | None
    ) -> tuple[float | None, list[MetricScore]]:
        scores: dict[str, float] = {}
        metrics: list[MetricScore] = []

        kp = player.kill_participation
        if kp is not None:
            kp_score = curves.kill_participation_score(kp, self.config.kill_participation)
            scores["kill_participation"] = kp_score
            metrics.append(
                MetricScore(
                    name="kill_participation",
                    score=round(kp_score, 2),
                    weight=self.config.kda_weights.get("kill_participation", 0.0),
                    player_value=kp,
                    source=BaselineSource.FIXED,
                )
            )
        if deaths_metric is not None:
            scores["deaths"] = deaths_metric.score

        return curves.weighted_score(scores, self.config.kda_weights), metrics

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def _player_choices(self, player: PlayerMatchStats) -> dict[str, str | None]:
        return {
            "keystone": str(player.keystone_id) if player.keystone_id > 0 else None,
            "spells": (
                spell_pair_key(player.spell1_id, player.spell2_id)
                if player.spell1_id > 0 and player.spell2_id > 0
                else None
            ),
            "skills": player.skill_order or None,
            "starting": normalize_starting_key(player.first_buy),
        }

    def _build_scores(
        self,
        player: PlayerMatchStats,
        aggregate: ChampionPatchAggregate | None,
        core_key: str | None,
        core_sub: CoreAggregate | None,
        used_fallback_patch: bool,
        fallbacks: dict[str, FallbackFlags],
    ) -> tuple[dict[str, float], list[ItemPenaltyDetail], dict[str, BuildChoiceResult]]:
        cfg = self.config
        neutral = cfg.calibration.neutral_score
        min_core = cfg.fallback.min_core_games
        player_choices = self._player_choices(player)

        scores: dict[str, float] = {}
        choices: dict[str, BuildChoiceResult] = {}

        if aggregate is None:
            for category in BUILD_CATEGORIES:
                scores[category] = neutral
                fallbacks[category] = FallbackFlags(
                    used_fallback_patch=used_fallback_patch, used_fallback_core=True, no_data=True
                )
            for category, choice in player_choices.items():
                choices[category] = neutral_choice(category, choice, neutral)
            choices["core"] = neutral_choice("core", core_key, neutral)
            return scores, [], choices

        # Items: whole core sub-aggregate or champion level
        use_core_items = self._core_trusted(core_sub)
        items_level = core_sub if use_core_items else aggregate
        items_score, item_details = score_items(player.items, items_level, cfg.items)
        if items_score is None and use_core_items:
            items_score, item_details = score_items(player.items, aggregate, cfg.items)
            use_core_items = False
        scores["items"] = items_score if items_score is not None else neutral
        fallbacks["items"] = FallbackFlags(
            used_fallback_patch=used_fallback_patch,
            used_fallback_core=not use_core_items,
            no_data=items_score is None,
        )

        # Categorical choices, falling back per category
        for category in CHOICE_CATEGORIES:
            counter = self._choice_counter(category, aggregate)
            source = BaselineSource.CHAMPION
            used_core = False
            if core_sub is not None:
                core_counter = self._choice_counter(category, core_sub)
                if core_counter.total_games >= min_core:
                    counter, source, used_core = core_counter, BaselineSource.CORE, True

            result = score_choice(
                category,
                player_choices[category],
                counter,
                cfg.choice_config(category),
                source,
                neutral,
            )
            choices[category] = result
            scores[category] = result.score
            fallbacks[category] = FallbackFlags(
                used_fallback_patch=used_fallback_patch,
                used_fallback_core=not used_core,
                no_data=result.source == BaselineSource.NONE,
            )

        core_result, used_family = score_core(core_key, aggregate, cfg.core, neutral)
        choices["core"] = core_result
        scores["core"] = core_result.score
        fallbacks["core"] = FallbackFlags(
            used_fallback_patch=used_fallback_patch,
            used_fallback_core=used_family or core_key is None,
            no_data=core_result.source == BaselineSource.NONE,
        )

        return scores, item_details, choices

    @staticmethod
    def _choice_counter(category: str, level: CoreAggregate) -> CategoricalCounter:
        if category == "keystone":
            return level.runes.keystone
        return getattr(level, category)

"""
Scoring Configuration Model

Pydantic models for the tunable product constants used by the scoring
engine: score calibration, fallback thresholds, build penalty caps and
category weights. Values are loaded from config/scoring.yaml when present.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("config/scoring.yaml")


class CalibrationConfig(BaseModel):
    """Mapping from z-score to the 0-100 metric score."""

    average_score: float = Field(default=70.0, ge=0, le=100)
    elite_score: float = Field(default=100.0, ge=0, le=100)
    elite_z: float = Field(default=1.0, gt=0)  # mean + 1 sd, roughly top 16%
    neutral_score: float = Field(default=50.0, ge=0, le=100)


class RateBaselineConfig(BaseModel):
    """When a running distribution is trusted for z-scores."""

    min_rate_samples: int = Field(default=30, ge=2)
    min_stddev_ratio: float = Field(default=0.05, ge=0)
    fallback_relative_stddev: float = Field(default=0.25, gt=0)
    short_game_minutes: float = Field(default=15.0, ge=0)


class DeathsConfig(BaseModel):
    """Optimal deaths-per-minute band and penalties outside it."""

    optimal_min: float = 0.5
    optimal_max: float = 0.7
    low_penalty_per_unit: float = 200.0
    high_penalty_per_unit: float = 120.0
    quality_threshold: float = 60.0
    max_quality_reduction: float = 0.5


class KillParticipationConfig(BaseModel):
    cap: float = Field(default=0.9, gt=0, le=1)
    exponent: float = Field(default=0.9, gt=0)


class CCTimeConfig(BaseModel):
    """Champion-average CC seconds/min thresholds."""

    ignore_below: float = 0.5
    ratio_below: float = 3.0


class RelevanceConfig(BaseModel):
    """Weights of each rate metric inside the performance sub-score."""

    damage_to_champions: float = 1.0
    total_damage: float = 1.0
    healing_threshold: float = 300.0
    healing_span: float = 2400.0
    cc_threshold: float = 1.0
    cc_pivot: float = 2.0
    cc_span: float = 12.0
    deaths: float = 0.5


class DamageShareConfig(BaseModel):
    """Team damage share that rescues a low raw damage score."""

    floor: float = 0.10
    ceiling: float = 0.30
    blend: float = 0.5


class FallbackConfig(BaseModel):
    min_core_games: int = Field(default=30, ge=0)
    min_total_games: int = Field(default=100, ge=0)


class ChoiceConfig(BaseModel):
    """Ranking and penalty parameters for one build choice category."""

    top_n: int = Field(default=3, ge=1)
    min_games: int = Field(default=30, ge=0)
    penalty_per_point: float = Field(default=1.0, ge=0)  # per winrate % point
    max_penalty: float = Field(default=20.0, gt=0)
    unknown_penalty: float = Field(default=10.0, ge=0)


class ItemsConfig(ChoiceConfig):
    """Per-slot item penalties; ``max_penalty`` caps a single item."""

    top_n: int = Field(default=5, ge=1)
    max_penalty: float = Field(default=10.0, gt=0)
    unknown_penalty: float = Field(default=5.0, ge=0)
    penalty_scale: float = Field(default=20.0, gt=0)  # total penalty that scores 0


class ScoringConfig(BaseModel):
    """Complete scoring configuration."""

    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    rates: RateBaselineConfig = Field(default_factory=RateBaselineConfig)
    deaths: DeathsConfig = Field(default_factory=DeathsConfig)
    kill_participation: KillParticipationConfig = Field(
        default_factory=KillParticipationConfig
    )
    cc_time: CCTimeConfig = Field(default_factory=CCTimeConfig)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)
    damage_share: DamageShareConfig = Field(default_factory=DamageShareConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)

    items: ItemsConfig = Field(default_factory=ItemsConfig)
    keystone: ChoiceConfig = Field(default_factory=ChoiceConfig)
    spells: ChoiceConfig = Field(
        default_factory=lambda: ChoiceConfig(unknown_penalty=5.0)
    )
    skills: ChoiceConfig = Field(
        default_factory=lambda: ChoiceConfig(top_n=2, min_games=20)
    )
    starting: ChoiceConfig = Field(
        default_factory=lambda: ChoiceConfig(
            min_games=20, max_penalty=10.0, unknown_penalty=5.0
        )
    )
    core: ChoiceConfig = Field(
        default_factory=lambda: ChoiceConfig(top_n=5, min_games=20)
    )

    build_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "items": 0.30,
            "core": 0.45,
            "keystone": 0.10,
            "starting": 0.05,
            "skills": 0.05,
            "spells": 0.05,
        }
    )
    kda_weights: dict[str, float] = Field(
        default_factory=lambda: {"kill_participation": 0.6, "deaths": 0.4}
    )
    final_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "performance": 0.30,
            "timeline": 0.125,
            "kda": 0.075,
            "build": 0.50,
        }
    )

    # Ingestion allow-list; empty accepts every patch
    accepted_patches: list[str] = Field(default_factory=list)

    def choice_config(self, category: str) -> ChoiceConfig:
        """Look up the choice parameters for a build category by name."""
        return getattr(self, category)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> ScoringConfig:
        """
        Load configuration from a YAML file.

        Missing files fall back to defaults; keys present in the file
        override only themselves.

        Args:
            config_path: Path to the YAML file (default: config/scoring.yaml)

        Returns:
            Validated configuration
        """
        path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

        if not path.exists():
            logger.warning(f"Scoring config not found at {path}, using defaults")
            return cls()

        with open(path) as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        logger.debug(f"Loaded scoring config from {path}")
        return cls.model_validate(data)

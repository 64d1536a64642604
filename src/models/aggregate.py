"""
Champion Aggregate Model

Running per-champion-per-patch statistics: five per-minute rate
distributions, categorical build counters and nested per-core-build
sub-aggregates. The dictionary form is the unit of persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.analytics.counters import CategoricalCounter
from src.analytics.moments import RateMomentAccumulator

# Per-minute metrics tracked for every champion and core build
RATE_METRICS = (
    "damage_to_champions_per_min",
    "total_damage_per_min",
    "healing_shielding_per_min",
    "cc_time_per_min",
    "deaths_per_min",
)

ITEM_SLOTS = (1, 2, 3, 4, 5, 6)

RUNE_GROUPS = (
    "keystone",
    "primary",
    "secondary",
    "offense",
    "flex",
    "defense",
    "tree_primary",
    "tree_secondary",
)


def _empty_rates() -> dict[str, RateMomentAccumulator]:
    return {metric: RateMomentAccumulator() for metric in RATE_METRICS}


def _empty_items() -> dict[int, CategoricalCounter]:
    return {slot: CategoricalCounter() for slot in ITEM_SLOTS}


@dataclass
class RuneCounters:
    """Rune choice counters, one per rune group."""

    keystone: CategoricalCounter = field(default_factory=CategoricalCounter)
    primary: CategoricalCounter = field(default_factory=CategoricalCounter)
    secondary: CategoricalCounter = field(default_factory=CategoricalCounter)
    offense: CategoricalCounter = field(default_factory=CategoricalCounter)
    flex: CategoricalCounter = field(default_factory=CategoricalCounter)
    defense: CategoricalCounter = field(default_factory=CategoricalCounter)
    tree_primary: CategoricalCounter = field(default_factory=CategoricalCounter)
    tree_secondary: CategoricalCounter = field(default_factory=CategoricalCounter)

    def group(self, name: str) -> CategoricalCounter:
        return getattr(self, name)

    def merge(self, other: RuneCounters) -> RuneCounters:
        return RuneCounters(
            **{name: self.group(name).merge(other.group(name)) for name in RUNE_GROUPS}
        )

    def to_dict(self) -> dict[str, Any]:
        return {name: self.group(name).to_dict() for name in RUNE_GROUPS}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RuneCounters:
        data = data or {}
        return cls(
            **{name: CategoricalCounter.from_dict(data.get(name)) for name in RUNE_GROUPS}
        )


@dataclass
class CoreAggregate:
    """
    Statistics for games sharing one core build.

    Also the base shape of :class:`ChampionPatchAggregate`, which adds the
    champion/patch identity and the nested core map.
    """

    games: int = 0
    wins: int = 0
    rates: dict[str, RateMomentAccumulator] = field(default_factory=_empty_rates)
    items: dict[int, CategoricalCounter] = field(default_factory=_empty_items)
    runes: RuneCounters = field(default_factory=RuneCounters)
    spells: CategoricalCounter = field(default_factory=CategoricalCounter)
    starting: CategoricalCounter = field(default_factory=CategoricalCounter)
    skills: CategoricalCounter = field(default_factory=CategoricalCounter)

    @property
    def winrate(self) -> float:
        return self.wins / self.games if self.games > 0 else 0.0

    def rate(self, metric: str) -> RateMomentAccumulator:
        """Rate accumulator for ``metric`` (created on first access)."""
        if metric not in self.rates:
            self.rates[metric] = RateMomentAccumulator()
        return self.rates[metric]

    def item_slot(self, slot: int) -> CategoricalCounter:
        if slot not in self.items:
            self.items[slot] = CategoricalCounter()
        return self.items[slot]

    def _body_dict(self) -> dict[str, Any]:
        return {
            "games": self.games,
            "wins": self.wins,
            "rates": {metric: acc.to_dict() for metric, acc in self.rates.items()},
            "items": {str(slot): c.to_dict() for slot, c in self.items.items()},
            "runes": self.runes.to_dict(),
            "spells": self.spells.to_dict(),
            "starting": self.starting.to_dict(),
            "skills": self.skills.to_dict(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return self._body_dict()

    @staticmethod
    def _body_kwargs(data: dict[str, Any]) -> dict[str, Any]:
        rates = _empty_rates()
        for metric, acc in (data.get("rates") or {}).items():
            rates[metric] = RateMomentAccumulator.from_dict(acc)

        items = _empty_items()
        for slot, counter in (data.get("items") or {}).items():
            items[int(slot)] = CategoricalCounter.from_dict(counter)

        return {
            "games": int(data.get("games", 0)),
            "wins": int(data.get("wins", 0)),
            "rates": rates,
            "items": items,
            "runes": RuneCounters.from_dict(data.get("runes")),
            "spells": CategoricalCounter.from_dict(data.get("spells")),
            "starting": CategoricalCounter.from_dict(data.get("starting")),
            "skills": CategoricalCounter.from_dict(data.get("skills")),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CoreAggregate:
        """Create from dictionary; missing sections come back empty."""
        return cls(**cls._body_kwargs(data or {}))


@dataclass
class ChampionPatchAggregate(CoreAggregate):
    """Baseline statistics for one (champion, patch) pair."""

    champion_name: str = ""
    patch: str = ""
    core: dict[str, CoreAggregate] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.champion_name, self.patch)

    def core_build(self, core_key: str) -> CoreAggregate:
        """Sub-aggregate for ``core_key`` (created on first access)."""
        if core_key not in self.core:
            self.core[core_key] = CoreAggregate()
        return self.core[core_key]

    def core_counter(self) -> CategoricalCounter:
        """Core build keys as a games/wins counter for ranking."""
        counter = CategoricalCounter()
        for core_key, sub in self.core.items():
            counter.increment_by(core_key, sub.games, sub.wins)
        return counter

    def to_dict(self) -> dict[str, Any]:
        data = {"champion_name": self.champion_name, "patch": self.patch}
        data.update(self._body_dict())
        data["core"] = {k: sub.to_dict() for k, sub in self.core.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ChampionPatchAggregate:
        data = data or {}
        return cls(
            champion_name=str(data.get("champion_name", "")),
            patch=str(data.get("patch", "")),
            core={
                k: CoreAggregate.from_dict(sub)
                for k, sub in (data.get("core") or {}).items()
            },
            **cls._body_kwargs(data),
        )

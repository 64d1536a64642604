"""
Categorical Counters

Games/wins tallies keyed by a discrete build choice (item id, rune id,
spell pair, skill order, starting items, core build key).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class WinStats:
    """Games played and games won with one choice."""

    games: int = 0
    wins: int = 0

    @property
    def winrate(self) -> float:
        """Win fraction (0-1); 0 when no games were recorded."""
        return self.wins / self.games if self.games > 0 else 0.0

    def to_dict(self) -> dict[str, int]:
        return {"games": self.games, "wins": self.wins}


@dataclass
class RankedChoice:
    """One entry of a counter ranked by winrate."""

    key: str
    games: int
    wins: int
    winrate: float


def normalize_key(key: Any) -> str:
    """Counter keys are stored as strings so aggregates stay JSON-serializable."""
    return str(key)


@dataclass
class CategoricalCounter:
    """Mapping from choice key to :class:`WinStats`, created lazily per key."""

    entries: dict[str, WinStats] = field(default_factory=dict)

    def increment(self, key: Any, won: bool) -> None:
        """Record one game with ``key``."""
        k = normalize_key(key)
        stats = self.entries.get(k)
        if stats is None:
            stats = WinStats()
            self.entries[k] = stats
        stats.games += 1
        if won:
            stats.wins += 1

    def increment_by(self, key: Any, games: int, wins: int) -> None:
        """Add pre-summed games/wins for ``key``."""
        k = normalize_key(key)
        stats = self.entries.setdefault(k, WinStats())
        stats.games += games
        stats.wins += wins

    def merge(self, other: CategoricalCounter) -> CategoricalCounter:
        """Key-union of both counters with games/wins summed; inputs untouched."""
        merged = self.copy()
        for key, stats in other.entries.items():
            target = merged.entries.get(key)
            if target is None:
                merged.entries[key] = WinStats(stats.games, stats.wins)
            else:
                target.games += stats.games
                target.wins += stats.wins
        return merged

    def get(self, key: Any) -> WinStats | None:
        return self.entries.get(normalize_key(key))

    def games(self, key: Any) -> int:
        stats = self.get(key)
        return stats.games if stats else 0

    def winrate(self, key: Any) -> float:
        """Winrate of ``key``. Callers guard against keys with zero games."""
        stats = self.entries[normalize_key(key)]
        return stats.wins / stats.games

    @property
    def total_games(self) -> int:
        return sum(s.games for s in self.entries.values())

    @property
    def total_wins(self) -> int:
        return sum(s.wins for s in self.entries.values())

    def ranked(self, min_games: int = 0) -> list[RankedChoice]:
        """
        Rank choices by winrate, best first.

        Ties are broken by games played, then by key so the order is
        deterministic.

        Args:
            min_games: Choices with fewer games are left out of the ranking

        Returns:
            Ranked choices
        """
        choices = [
            RankedChoice(key=k, games=s.games, wins=s.wins, winrate=s.winrate)
            for k, s in self.entries.items()
            if s.games > 0 and s.games >= min_games
        ]
        choices.sort(key=lambda c: (-c.winrate, -c.games, c.key))
        return choices

    def copy(self) -> CategoricalCounter:
        return CategoricalCounter(
            entries={k: WinStats(s.games, s.wins) for k, s in self.entries.items()}
        )

    def __contains__(self, key: Any) -> bool:
        return normalize_key(key) in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Convert to dictionary for persistence."""
        return {k: s.to_dict() for k, s in self.entries.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CategoricalCounter:
        """Create from a ``{key: {"games": g, "wins": w}}`` mapping."""
        counter = cls()
        for key, stats in (data or {}).items():
            counter.entries[normalize_key(key)] = WinStats(
                games=int(stats.get("games", 0)),
                wins=int(stats.get("wins", 0)),
            )
        return counter

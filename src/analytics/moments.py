"""
Running Moments Module

Constant-space running statistics for per-minute rate metrics:
- Welford's single-pass mean/variance update
- Exact pairwise merge of independently accumulated cells
- Population variance, standard deviation and z-scores
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


@dataclass
class RateMomentAccumulator:
    """Running count, mean and sum of squared deviations for one metric."""

    n: int = 0
    mean: float = 0.0
    m2: float = 0.0  # sum of squared deviations from the running mean

    def update(self, value: float) -> None:
        """Fold a single observation into the running state."""
        self.n += 1
        delta = value - self.mean
        self.mean += delta / self.n
        delta2 = value - self.mean
        self.m2 += delta * delta2

    def merge(self, other: RateMomentAccumulator) -> RateMomentAccumulator:
        """
        Combine two accumulators into a new one.

        Uses the parallel variance formula (Chan et al.), so the result is
        the same as folding both observation sets one at a time. Neither
        operand is modified.

        Args:
            other: Accumulator built from a disjoint set of observations

        Returns:
            New accumulator covering both observation sets
        """
        if other.n == 0:
            return self.copy()
        if self.n == 0:
            return other.copy()

        n = self.n + other.n
        delta = other.mean - self.mean
        mean = (self.n * self.mean + other.n * other.mean) / n
        m2 = self.m2 + other.m2 + delta * delta * self.n * other.n / n
        return RateMomentAccumulator(n=n, mean=mean, m2=m2)

    @property
    def variance(self) -> float:
        """Population variance (0 until two observations exist)."""
        if self.n < 2:
            return 0.0
        return max(self.m2, 0.0) / self.n

    @property
    def stddev(self) -> float:
        """Population standard deviation."""
        return math.sqrt(self.variance)

    def z_score(self, value: float) -> float:
        """Standardize a value against this distribution (0 when flat)."""
        stddev = self.stddev
        if stddev == 0:
            return 0.0
        return (value - self.mean) / stddev

    def copy(self) -> RateMomentAccumulator:
        return RateMomentAccumulator(n=self.n, mean=self.mean, m2=self.m2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {"n": self.n, "mean": self.mean, "m2": self.m2}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RateMomentAccumulator:
        """Create from dictionary, tolerating missing fields."""
        if not data:
            return cls()
        return cls(
            n=int(data.get("n", 0)),
            mean=float(data.get("mean", 0.0)),
            m2=float(data.get("m2", 0.0)),
        )


def merge_moments(
    a: RateMomentAccumulator, b: RateMomentAccumulator
) -> RateMomentAccumulator:
    """Functional form of :meth:`RateMomentAccumulator.merge`."""
    return a.merge(b)

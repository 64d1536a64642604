"""
Analytics Module

Statistical building blocks for baselines and scoring.

Components:
    - RateMomentAccumulator: Welford running mean/variance with exact merge
    - CategoricalCounter: games/wins per discrete build choice
    - curves: z-score, band and ratio mappings onto the 0-100 scale
"""

from src.analytics.moments import RateMomentAccumulator, merge_moments
from src.analytics.counters import CategoricalCounter, RankedChoice, WinStats
from src.analytics import curves

__all__ = [
    "RateMomentAccumulator",
    "merge_moments",
    "CategoricalCounter",
    "RankedChoice",
    "WinStats",
    "curves",
]

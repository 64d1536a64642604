"""
Data Processors Module

Processors:
    - ComboKeyNormalizer: canonical core build keys from purchase order
    - StatsAccumulator: online per-champion-per-patch aggregation
    - AggregateMerger: exact merge of accumulated aggregates
    - ScoringEngine: player game scoring with the fallback chain
    - IngestPolicy: remake and accepted-patch filtering
"""

from src.processors.build_keys import ComboKeyNormalizer, ItemCatalog, ItemType
from src.processors.accumulator import StatsAccumulator
from src.processors.merger import AggregateMerger
from src.processors.patches import IngestPolicy, extract_patch, nearest_prior_patch
from src.processors.scoring import ScoringEngine

__all__ = [
    "ComboKeyNormalizer",
    "ItemCatalog",
    "ItemType",
    "StatsAccumulator",
    "AggregateMerger",
    "IngestPolicy",
    "extract_patch",
    "nearest_prior_patch",
    "ScoringEngine",
]

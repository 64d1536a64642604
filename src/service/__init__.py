"""Service layer for ingestion, persistence and scoring."""

from .store import AggregateStore, DiskCacheAggregateStore, InMemoryAggregateStore, StoreStatus
from .pipeline import FlushResult, IngestionPipeline

__all__ = [
    "AggregateStore",
    "DiskCacheAggregateStore",
    "InMemoryAggregateStore",
    "StoreStatus",
    "FlushResult",
    "IngestionPipeline",
]

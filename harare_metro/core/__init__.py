"""
Core domain models and business logic.

This package contains data types, classification, normalization and
deduplication logic that is independent of fetching and storage.
"""

from .types import (
    CATCH_ALL_CATEGORY,
    AggregationReport,
    Article,
    CacheMetadata,
    Classification,
    ImageCandidate,
    RawItem,
    Snapshot,
    SourceConfig,
    SourceFailed,
    SourceOk,
)
from .classifier import ArticleClassifier
from .dedup import dedup_articles, normalize_title, sort_articles

__all__ = [
    "CATCH_ALL_CATEGORY",
    "AggregationReport",
    "Article",
    "ArticleClassifier",
    "CacheMetadata",
    "Classification",
    "ImageCandidate",
    "RawItem",
    "Snapshot",
    "SourceConfig",
    "SourceFailed",
    "SourceOk",
    "dedup_articles",
    "normalize_title",
    "sort_articles",
]

"""Data models for PublicationScout."""

from publication_scout.models.model_analytics import (
    CorpusInsights,
    FilterOption,
    FilterOptions,
    ResearchGap,
    TopicCount,
    TopicDistribution,
    YearlyStats,
)
from publication_scout.models.model_publication import (
    InvalidFilterError,
    Publication,
    PublicationSummary,
    SearchFilters,
    Section,
)
from publication_scout.models.model_summary import AISummary

__all__ = [
    "AISummary",
    "CorpusInsights",
    "FilterOption",
    "FilterOptions",
    "InvalidFilterError",
    "Publication",
    "PublicationSummary",
    "ResearchGap",
    "SearchFilters",
    "Section",
    "TopicCount",
    "TopicDistribution",
    "YearlyStats",
]

"""Filter engine and filter-option discovery."""

from collections import Counter
from typing import Iterable, Sequence

from publication_scout.models.model_analytics import FilterOption, FilterOptions
from publication_scout.models.model_publication import (
    InvalidFilterError,
    Publication,
    SearchFilters,
)


def _any_member(values: Iterable[str], allowed: frozenset[str]) -> bool:
    return any(value in allowed for value in values)


def matches_filters(publication: Publication, filters: SearchFilters) -> bool:
    """True when the publication passes every non-empty filter dimension.

    Multi-valued fields (topics, organisms, experiment types) need at least one
    value in the filter set; single-valued mission/platform must be a member.
    """
    start, end = filters.years
    if not start <= publication.year <= end:
        return False
    if filters.topics and not _any_member(publication.topics, filters.topics):
        return False
    if filters.organisms and not _any_member(publication.organisms, filters.organisms):
        return False
    if filters.experiment_types and not _any_member(
        publication.experiment_type, filters.experiment_types
    ):
        return False
    if filters.missions and publication.mission not in filters.missions:
        return False
    if filters.platforms and publication.platform not in filters.platforms:
        return False
    return True


def filter_publications(
    publications: Sequence[Publication], filters: SearchFilters
) -> list[Publication]:
    """Stable filter: input order is preserved.

    Raises:
        InvalidFilterError: if the year range is inverted.
    """
    start, end = filters.years
    if start > end:
        raise InvalidFilterError(f"start year {start} is after end year {end}")
    return [p for p in publications if matches_filters(p, filters)]


def _options(counter: Counter[str]) -> list[FilterOption]:
    return [FilterOption(value=value, count=counter[value]) for value in sorted(counter)]


def get_filter_options(publications: Sequence[Publication]) -> FilterOptions:
    """Sorted unique values per filter dimension, each with a publication count."""
    years: set[int] = set()
    topics: Counter[str] = Counter()
    organisms: Counter[str] = Counter()
    experiment_types: Counter[str] = Counter()
    missions: Counter[str] = Counter()
    platforms: Counter[str] = Counter()

    for pub in publications:
        if pub.year:
            years.add(pub.year)
        topics.update(set(pub.topics))
        organisms.update(set(pub.organisms))
        experiment_types.update(set(pub.experiment_type))
        if pub.mission:
            missions[pub.mission] += 1
        if pub.platform:
            platforms[pub.platform] += 1

    return FilterOptions(
        years=sorted(years),
        topics=_options(topics),
        organisms=_options(organisms),
        experiment_types=_options(experiment_types),
        missions=_options(missions),
        platforms=_options(platforms),
    )

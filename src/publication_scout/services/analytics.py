"""
Topic and trend analytics over the corpus.

Everything here is a lexical/statistical heuristic recomputed on every call:
  - topic distribution (publications per topic)
  - yearly stats (publications per year, top 5 topics)
  - research gaps: low-coverage topics and topics whose per-year count is
    non-increasing over the most recent years
"""

import logging
from collections import Counter, defaultdict
from typing import Sequence

from publication_scout.constants import (
    ABSTRACT_PREVIEW_LENGTH,
    DECLINING_TREND_SEVERITY,
    LOW_COVERAGE_THRESHOLD,
    MIN_TREND_HISTORY_YEARS,
    RELATED_TOPICS_LIMIT,
    TOP_TOPICS_PER_YEAR,
    TREND_WINDOW_YEARS,
)
from publication_scout.models.model_analytics import (
    CorpusInsights,
    ResearchGap,
    TopicCount,
    TopicDistribution,
    YearlyStats,
)
from publication_scout.models.model_publication import Publication, PublicationSummary

logger = logging.getLogger(__name__)


def calculate_topic_distribution(
    publications: Sequence[Publication],
) -> list[TopicDistribution]:
    """Publications per topic, most frequent first (ties in first-seen order)."""
    publication_ids: dict[str, list[str]] = {}
    for pub in publications:
        for topic in dict.fromkeys(pub.topics):
            publication_ids.setdefault(topic, []).append(pub.id)

    distribution = [
        TopicDistribution(topic=topic, count=len(ids), publications=ids)
        for topic, ids in publication_ids.items()
    ]
    return sorted(distribution, key=lambda d: -d.count)


def calculate_yearly_stats(publications: Sequence[Publication]) -> list[YearlyStats]:
    """Per-year publication count and top topics, years ascending."""
    year_counts: Counter[int] = Counter()
    year_topics: dict[int, Counter[str]] = defaultdict(Counter)

    for pub in publications:
        year_counts[pub.year] += 1
        year_topics[pub.year].update(dict.fromkeys(pub.topics, 1))

    stats = []
    for year in sorted(year_counts):
        # Counter preserves first-seen order, so the stable sort breaks ties by it
        ranked = sorted(year_topics[year].items(), key=lambda item: -item[1])
        stats.append(
            YearlyStats(
                year=year,
                publication_count=year_counts[year],
                top_topics=[
                    TopicCount(topic=topic, count=count)
                    for topic, count in ranked[:TOP_TOPICS_PER_YEAR]
                ],
            )
        )
    return stats


def find_related_topics(
    topic: str,
    publications: Sequence[Publication],
    limit: int = RELATED_TOPICS_LIMIT,
) -> list[str]:
    """Topics co-occurring with the given one, by co-occurrence count."""
    co_occurrence: Counter[str] = Counter()
    for pub in publications:
        if topic not in pub.topics:
            continue
        co_occurrence.update(t for t in dict.fromkeys(pub.topics) if t != topic)
    ranked = sorted(co_occurrence.items(), key=lambda item: -item[1])
    return [related for related, _ in ranked[:limit]]


def low_coverage_gaps(
    publications: Sequence[Publication],
    threshold: int = LOW_COVERAGE_THRESHOLD,
    related_limit: int = RELATED_TOPICS_LIMIT,
    distribution: list[TopicDistribution] | None = None,
) -> list[ResearchGap]:
    """Topics with fewer than `threshold` publications.

    severity = 1 - count / max_count, so only a zero count reaches 1.0.
    """
    distribution = distribution or calculate_topic_distribution(publications)
    if not distribution:
        return []
    max_count = max(d.count for d in distribution)

    return [
        ResearchGap(
            topic=d.topic,
            severity=1 - d.count / max_count,
            related_topics=find_related_topics(d.topic, publications, related_limit),
            description=f"Limited research on {d.topic} with only {d.count} publications.",
        )
        for d in distribution
        if d.count < threshold
    ]


def declining_topics(
    publications: Sequence[Publication],
    distribution: list[TopicDistribution] | None = None,
) -> list[str]:
    """Topics whose per-year count never rises across the recent window.

    The window is the last TREND_WINDOW_YEARS distinct years present in the
    data; with fewer than MIN_TREND_HISTORY_YEARS of history nothing qualifies.
    """
    distribution = distribution or calculate_topic_distribution(publications)
    recent_years = sorted({pub.year for pub in publications})[-TREND_WINDOW_YEARS:]
    if len(recent_years) < MIN_TREND_HISTORY_YEARS:
        return []

    counts: dict[str, Counter[int]] = defaultdict(Counter)
    for pub in publications:
        for topic in dict.fromkeys(pub.topics):
            counts[topic][pub.year] += 1

    declining = []
    for entry in distribution:
        trend = [counts[entry.topic][year] for year in recent_years]
        non_increasing = all(later <= earlier for earlier, later in zip(trend, trend[1:]))
        if non_increasing and max(trend) > 0:
            declining.append(entry.topic)
    return declining


def identify_research_gaps(
    publications: Sequence[Publication],
    low_coverage_threshold: int = LOW_COVERAGE_THRESHOLD,
) -> list[ResearchGap]:
    """Low-coverage gaps plus declining-trend gaps, most severe first.

    Declining topics get the fixed DECLINING_TREND_SEVERITY (a known
    simplification). A topic that qualifies both ways yields two entries.
    """
    distribution = calculate_topic_distribution(publications)
    gaps = low_coverage_gaps(
        publications, low_coverage_threshold, distribution=distribution
    )
    gaps.extend(
        ResearchGap(
            topic=topic,
            severity=DECLINING_TREND_SEVERITY,
            related_topics=find_related_topics(topic, publications),
            description=f"Declining research trend for {topic} in recent years.",
        )
        for topic in declining_topics(publications, distribution)
    )
    logger.debug("Identified %d research gaps", len(gaps))
    return sorted(gaps, key=lambda gap: -gap.severity)


def publication_summaries(
    publications: Sequence[Publication],
) -> list[PublicationSummary]:
    """Card views with the abstract cut to a short preview."""
    summaries = []
    for pub in publications:
        preview = pub.abstract[:ABSTRACT_PREVIEW_LENGTH]
        if len(pub.abstract) > ABSTRACT_PREVIEW_LENGTH:
            preview += "..."
        summaries.append(
            PublicationSummary(
                id=pub.id,
                title=pub.title,
                authors=pub.authors,
                year=pub.year,
                abstract=preview,
                topics=pub.topics,
                full_text_available=pub.full_text_available,
            )
        )
    return summaries


def summarize_corpus(publications: Sequence[Publication]) -> CorpusInsights:
    """Plain-language insights: timespan, focus topics, organisms, trends, gaps."""
    if not publications:
        empty = "No publications loaded."
        return CorpusInsights(
            timespan=empty,
            topic_focus=empty,
            organisms=empty,
            trends=empty,
            gaps=empty,
            recommendations=empty,
        )

    years = [pub.year for pub in publications]
    first, last = min(years), max(years)
    top_topics = [d.topic for d in calculate_topic_distribution(publications)[:5]]

    organism_counts: Counter[str] = Counter()
    for pub in publications:
        organism_counts.update(dict.fromkeys(pub.organisms, 1))
    if organism_counts:
        most_studied = organism_counts.most_common(1)[0][0]
        organisms = (
            f"Research covers {len(organism_counts)} different organisms, "
            f"with {most_studied} being the most studied."
        )
    else:
        organisms = "No organism information is available."

    if len(top_topics) >= 2:
        trends = (
            f"Research has shown increasing focus on {top_topics[0]} "
            f"and {top_topics[1]} in recent years."
        )
    elif top_topics:
        trends = f"Research has concentrated on {top_topics[0]}."
    else:
        trends = "No topic trends could be determined."

    gap_topics = list(
        dict.fromkeys(gap.topic for gap in identify_research_gaps(publications))
    )[:3]
    if gap_topics:
        gaps = f"The most significant research gaps are in {', '.join(gap_topics)}."
    else:
        gaps = "No research gaps were identified."

    return CorpusInsights(
        timespan=f"The dataset spans {last - first} years of research from {first} to {last}.",
        topic_focus=(
            f"The most studied topics are {', '.join(top_topics)}."
            if top_topics
            else "No topics were identified."
        ),
        organisms=organisms,
        trends=trends,
        gaps=gaps,
        recommendations="Future research should focus on closing gaps in under-researched areas.",
    )

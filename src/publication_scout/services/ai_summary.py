"""
AI summary adapter.

Three operations, each trying the generative-language oracle first and
degrading to a deterministic local heuristic on any failure:

  generate_summary: abstract -> AISummary
  semantic_search: query + publications -> publications reordered
  identify_gaps: publications -> ResearchGap list

Callers never see an oracle error, only a lower-fidelity result; every
degradation is logged as a warning. Free-text responses are parsed here and
nowhere else.
"""

import logging
import re
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from publication_scout.config import get_settings
from publication_scout.constants import (
    DEFAULT_KEY_FINDINGS,
    DEFAULT_MISSION_RELEVANCE,
    DEFAULT_ONE_LINE_SUMMARY,
    FALLBACK_LOW_COVERAGE_THRESHOLD,
    FALLBACK_RELATED_TOPICS_LIMIT,
    ORACLE_ABSTRACT_EXCERPT,
    ORACLE_GAP_SAMPLE_SIZE,
    SUMMARY_FILLER_WORDS,
    SUMMARY_KEYWORDS,
)
from publication_scout.models.model_analytics import ResearchGap
from publication_scout.models.model_publication import Publication
from publication_scout.models.model_summary import AISummary
from publication_scout.services.analytics import low_coverage_gaps
from publication_scout.services.llm import (
    ORACLE_FAILURES,
    OracleResponseError,
    extract_json_objects,
    parse_llm_response,
    query_llm,
)
from publication_scout.services.search_index import tokenize
from publication_scout.services.topics import find_vocabulary_terms
from publication_scout.utils.cache import JsonCache

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


# ── Superseded requests ──────────────────────────────────────────────────────


class StaleResponseError(Exception):
    """Raised when a newer request began before this one resolved."""

    def __init__(self, token: int, latest: int):
        self.token = token
        self.latest = latest
        super().__init__(f"Response for request {token} superseded by {latest}")


class RequestEpoch:
    """Monotonic request counter shared by one caller's session.

    Pass the same epoch to successive calls; a call that resolves after a
    newer one has begun raises StaleResponseError instead of returning.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def begin(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    def check(self, token: int) -> None:
        if not self.is_current(token):
            raise StaleResponseError(token, self._latest)


def _summary_cache() -> JsonCache:
    return JsonCache(enabled=get_settings().summary_cache_enabled)


def _excerpt(text: str, limit: int = ORACLE_ABSTRACT_EXCERPT) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


# ── Response parsing ─────────────────────────────────────────────────────────


def _section_text(text: str, section_name: str) -> str | None:
    pattern = rf"{re.escape(section_name)}[:\s]+(.*?)(?:\n\s*\n|$)"
    match = re.search(pattern, text, re.IGNORECASE | re.DOTALL)
    return match.group(1) if match else None


def extract_section(text: str, section_name: str) -> str | None:
    """Text following "<section_name>:" up to the next blank line."""
    body = _section_text(text, section_name)
    if body is None:
        return None
    cleaned = body.strip().strip("*").strip()
    return cleaned or None


def extract_list_items(text: str, section_name: str) -> list[str] | None:
    """Bulleted or numbered items of a section, markers stripped."""
    body = _section_text(text, section_name)
    if body is None:
        return None
    items = [_BULLET.sub("", line).strip().strip("*").strip() for line in body.splitlines()]
    items = [item for item in items if item]
    return items or None


def parse_summary(text: str) -> AISummary:
    """Build an AISummary from free text, substituting defaults for missing parts."""
    return AISummary(
        one_line_summary=extract_section(text, "one-line summary") or DEFAULT_ONE_LINE_SUMMARY,
        key_findings=extract_list_items(text, "key findings") or list(DEFAULT_KEY_FINDINGS),
        mission_relevance=(
            extract_section(text, "relevance to space missions") or DEFAULT_MISSION_RELEVANCE
        ),
        gap_areas=extract_list_items(text, "research gap areas"),
    )


def parse_ranked_ids(text: str, known_ids: Sequence[str]) -> list[str]:
    """Known publication ids in the order the response mentions them."""
    known = set(known_ids)
    try:
        candidates = [str(item) for item in parse_llm_response(text)]
    except ValueError:
        candidates = [text]

    ranked: dict[str, None] = {}
    for candidate in candidates:
        for token in re.split(r"[\s,]+", candidate):
            token = token.strip("\"'`[]().")
            if token in known:
                ranked.setdefault(token, None)
    return list(ranked)


def parse_gaps(text: str) -> list[ResearchGap]:
    """Validate the oracle's JSON gap list; malformed entries are skipped."""
    gaps = []
    for item in extract_json_objects(text):
        related = item.get("relatedTopics", item.get("related_topics", []))
        try:
            gap = ResearchGap(
                topic=str(item.get("topic") or "").strip(),
                severity=item.get("severity", 0),
                related_topics=[str(t) for t in related] if isinstance(related, list) else [],
                description=str(item.get("description") or ""),
            )
        except ValidationError as e:
            logger.debug("Skipping malformed gap %r: %s", item, e)
            continue
        if gap.topic:
            gaps.append(gap)
    return gaps


# ── Local heuristics ─────────────────────────────────────────────────────────


def extract_keywords(text: str) -> list[str]:
    """Vocabulary hits, padded with long words from the text when fewer than 3."""
    found = find_vocabulary_terms(text, SUMMARY_KEYWORDS)
    if len(found) >= 3:
        return found
    words = [
        word
        for word in re.split(r"\W+", text)
        if len(word) > 5 and word.lower() not in SUMMARY_FILLER_WORDS
    ]
    return list(dict.fromkeys(found + words[:10]))


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def simulate_summary(abstract: str) -> AISummary:
    """Deterministic keyword-template summary used when the oracle fails."""
    keywords = extract_keywords(abstract)

    def kw(i: int, default: str) -> str:
        return keywords[i] if i < len(keywords) else default

    lowered = abstract.lower()
    gap_areas = None
    if "future" in lowered or "further" in lowered:
        gap_areas = [
            "Further research needed on long-term adaptation mechanisms",
            "Additional studies required on countermeasure effectiveness",
        ]

    return AISummary(
        one_line_summary=(
            f"Research investigating {kw(0, 'space biology')} in "
            f"{kw(1, 'microgravity')} conditions, with implications for "
            f"{kw(2, 'future space missions')}."
        ),
        key_findings=[
            f"{_capitalize(kw(0, 'Biological systems'))} showed significant changes "
            f"under {kw(1, 'space')} conditions.",
            f"{_capitalize(kw(2, 'Research'))} demonstrated potential adaptations "
            f"to {kw(3, 'microgravity')}.",
            f"Results suggest important considerations for {kw(4, 'astronaut health')} "
            f"during long-duration missions.",
        ],
        mission_relevance=(
            f"This research is relevant to {kw(5, 'future Moon and Mars missions')} "
            f"as it addresses {kw(0, 'biological')} challenges in the space environment."
        ),
        gap_areas=gap_areas,
    )


def rank_locally(query: str, publications: Sequence[Publication]) -> list[Publication]:
    """Keyword-overlap ranking: title hit +5, topic hit +4, +1 per matching word."""
    query_words = tokenize(query)
    scored = []
    for pub in publications:
        title = pub.title.lower()
        topics = [t.lower() for t in pub.topics]
        words = re.split(r"\W+", title) + re.split(r"\W+", pub.abstract.lower()) + topics

        score = 0
        for query_word in query_words:
            if query_word in title:
                score += 5
            if any(query_word in topic for topic in topics):
                score += 4
            score += sum(1 for word in words if query_word in word)
        scored.append((score, pub))

    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda pair: -pair[0])
    return [pub for _, pub in ranked]


def local_gaps(publications: Sequence[Publication]) -> list[ResearchGap]:
    gaps = low_coverage_gaps(
        publications,
        threshold=FALLBACK_LOW_COVERAGE_THRESHOLD,
        related_limit=FALLBACK_RELATED_TOPICS_LIMIT,
    )
    return sorted(gaps, key=lambda gap: -gap.severity)


# ── Oracle calls ─────────────────────────────────────────────────────────────


def _is_placeholder(summary: AISummary) -> bool:
    return (
        summary.one_line_summary == DEFAULT_ONE_LINE_SUMMARY
        and summary.key_findings == list(DEFAULT_KEY_FINDINGS)
        and summary.mission_relevance == DEFAULT_MISSION_RELEVANCE
        and summary.gap_areas is None
    )


async def summarize_with_oracle(abstract: str) -> AISummary:
    cache = _summary_cache()
    params = {"abstract": abstract}
    try:
        cached = cache.get("summary", params)
    except OSError as e:
        logger.warning("Summary cache unreadable, skipping: %r", e)
        cached = None
    if cached is not None:
        return AISummary.model_validate(cached)

    template = (_PROMPTS_DIR / "summarize_abstract.txt").read_text()
    text = await query_llm(template.format(abstract=abstract))
    summary = parse_summary(text)

    if _is_placeholder(summary):
        logger.info("Oracle summary had no recognizable sections; not caching")
        return summary
    try:
        cache.set("summary", params, summary.model_dump())
    except OSError as e:
        logger.warning("Summary cache unwritable, skipping: %r", e)
    return summary


async def rank_with_oracle(
    query: str, publications: Sequence[Publication]
) -> list[Publication]:
    listing = "\n\n".join(
        f"ID: {pub.id}\nTitle: {pub.title}\nAbstract: {_excerpt(pub.abstract)}"
        for pub in publications
    )
    template = (_PROMPTS_DIR / "rank_publications.txt").read_text()
    text = await query_llm(template.format(query=query, publications=listing))

    ranked_ids = parse_ranked_ids(text, [pub.id for pub in publications])
    if not ranked_ids:
        raise OracleResponseError("No known publication ids in ranking response")

    by_id = {pub.id: pub for pub in publications}
    ranked = [by_id[pub_id] for pub_id in ranked_ids]
    seen = set(ranked_ids)
    return ranked + [pub for pub in publications if pub.id not in seen]


async def gaps_with_oracle(publications: Sequence[Publication]) -> list[ResearchGap]:
    sample = publications[:ORACLE_GAP_SAMPLE_SIZE]
    listing = "\n\n".join(
        f"Title: {pub.title}\nAbstract: {_excerpt(pub.abstract)}\n"
        f"Topics: {', '.join(pub.topics)}"
        for pub in sample
    )
    template = (_PROMPTS_DIR / "identify_gaps.txt").read_text()
    text = await query_llm(template.format(publications=listing))

    gaps = parse_gaps(text)
    if not gaps:
        raise OracleResponseError("Gap response contained no usable entries")
    return gaps


# ── Public adapter ───────────────────────────────────────────────────────────


async def generate_summary(abstract: str, epoch: RequestEpoch | None = None) -> AISummary:
    """Summarize an abstract; never raises an oracle error.

    Raises:
        StaleResponseError: only when an epoch is given and a newer request
            started while this one was pending.
    """
    token = epoch.begin() if epoch else 0
    try:
        summary = await summarize_with_oracle(abstract)
    except ORACLE_FAILURES as e:
        logger.warning("Oracle summary failed, using local heuristic: %r", e)
        summary = simulate_summary(abstract)
    if epoch:
        epoch.check(token)
    return summary


async def semantic_search(
    query: str,
    publications: Sequence[Publication],
    epoch: RequestEpoch | None = None,
) -> list[Publication]:
    """Rank publications for a query; oracle order, or local keyword ranking."""
    token = epoch.begin() if epoch else 0
    if not publications:
        return []
    try:
        ranked = await rank_with_oracle(query, publications)
    except ORACLE_FAILURES as e:
        logger.warning("Oracle ranking failed, using local ranking: %r", e)
        ranked = rank_locally(query, publications)
    if epoch:
        epoch.check(token)
    return ranked


async def identify_gaps(
    publications: Sequence[Publication], epoch: RequestEpoch | None = None
) -> list[ResearchGap]:
    """Research gaps from the oracle, or from topic-frequency heuristics."""
    token = epoch.begin() if epoch else 0
    if not publications:
        return []
    try:
        gaps = await gaps_with_oracle(publications)
    except ORACLE_FAILURES as e:
        logger.warning("Oracle gap analysis failed, using topic frequencies: %r", e)
        gaps = local_gaps(publications)
    if epoch:
        epoch.check(token)
    return gaps

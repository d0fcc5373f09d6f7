"""
Search and ranking over the publication corpus.

Three search strategies:
  indexed    inverted-index lookup, ranked by number of distinct query tokens
             matched (falls back to weighted when no index is given)
  weighted   substring scorer: 3×title + 1×abstract + 2×keyword + 2×author hits
  full_text  unranked AND filter; every whitespace-separated term must occur
             somewhere in title + authors + abstract + journal

Sorting is orthogonal to searching, see sort_publications().
"""

import logging
from enum import Enum
from typing import Mapping, Sequence

from publication_scout.constants import (
    ABSTRACT_WEIGHT,
    AUTHOR_WEIGHT,
    DEFAULT_PAGE_SIZE,
    KEYWORD_WEIGHT,
    RELATED_TITLE_WORD_MIN_LENGTH,
    TITLE_WEIGHT,
)
from publication_scout.models.model_publication import Publication
from publication_scout.services.search_index import tokenize

logger = logging.getLogger(__name__)


class SearchMode(str, Enum):
    INDEXED = "indexed"
    WEIGHTED = "weighted"
    FULL_TEXT = "full_text"


class SortOption(str, Enum):
    RELEVANCE = "relevance"
    YEAR_DESC = "year-desc"
    YEAR_ASC = "year-asc"
    # PMCID presence, not a citation count: the source data carries no counts.
    CITATIONS = "citations"


def query_terms(query: str) -> list[str]:
    """Distinct query tokens, tokenized exactly like the index."""
    return list(dict.fromkeys(tokenize(query)))


# ------------------------------------------------------------------
# Strategies
# ------------------------------------------------------------------


def search_indexed(
    publications: Sequence[Publication], query: str, index: Mapping[str, Sequence[int]]
) -> list[Publication]:
    """Rank by how many distinct query tokens each publication contains.

    Each query token contributes at most 1 per publication. Ties keep corpus
    order; publications matching no token are excluded.
    """
    matches: dict[int, int] = {}
    for term in query_terms(query):
        for position in index.get(term, []):
            matches[position] = matches.get(position, 0) + 1

    ranked = sorted(
        (pos for pos in matches if pos < len(publications)),
        key=lambda pos: (-matches[pos], pos),
    )
    return [publications[pos] for pos in ranked]


def weighted_score(publication: Publication, terms: Sequence[str]) -> int:
    """Substring-containment score of one publication against query terms."""
    title = publication.title.lower()
    abstract = publication.abstract.lower()
    keywords = [k.lower() for k in publication.keywords or []]
    authors = [a.lower() for a in publication.authors or []]

    score = 0
    for term in terms:
        if term in title:
            score += TITLE_WEIGHT
        if term in abstract:
            score += ABSTRACT_WEIGHT
        if any(term in keyword for keyword in keywords):
            score += KEYWORD_WEIGHT
        if any(term in author for author in authors):
            score += AUTHOR_WEIGHT
    return score


def search_weighted(
    publications: Sequence[Publication], query: str
) -> list[Publication]:
    """Rank by weighted_score, dropping zero scores. Stable on ties."""
    terms = query_terms(query)
    scored = [(weighted_score(p, terms), p) for p in publications]
    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda pair: -pair[0])
    return [p for _, p in ranked]


def search_full_text(
    publications: Sequence[Publication], query: str
) -> list[Publication]:
    """Keep publications containing every query term; input order preserved."""
    terms = query.lower().split()
    results = []
    for pub in publications:
        searchable = " ".join(
            [pub.title, " ".join(pub.authors), pub.abstract, pub.journal]
        ).lower()
        if all(term in searchable for term in terms):
            results.append(pub)
    return results


def search_publications(
    publications: Sequence[Publication],
    query: str,
    mode: SearchMode = SearchMode.INDEXED,
    index: Mapping[str, Sequence[int]] | None = None,
) -> list[Publication]:
    """Dispatch to a search strategy. A blank query applies no text constraint.

    Args:
        publications: Corpus (or snapshot) to search. For indexed mode this
            must be the exact sequence the index was built from.
        query: Raw user query.
        mode: Strategy to use.
        index: Inverted index; indexed mode degrades to weighted without one.
    """
    if not query.strip():
        return list(publications)

    if mode is SearchMode.FULL_TEXT:
        return search_full_text(publications, query)
    if mode is SearchMode.INDEXED and index is not None:
        return search_indexed(publications, query, index)
    if mode is SearchMode.INDEXED:
        logger.debug("No search index available; using weighted scorer")
    return search_weighted(publications, query)


# ------------------------------------------------------------------
# Sorting, related items, pagination
# ------------------------------------------------------------------


def sort_publications(
    publications: Sequence[Publication],
    option: SortOption,
    query: str = "",
) -> list[Publication]:
    """Return a new, stably sorted list.

    A missing year sorts as 0. RELEVANCE without an active query keeps the
    input order.
    """
    if option is SortOption.YEAR_DESC:
        return sorted(publications, key=lambda p: p.year or 0, reverse=True)
    if option is SortOption.YEAR_ASC:
        return sorted(publications, key=lambda p: p.year or 0)
    if option is SortOption.CITATIONS:
        return sorted(publications, key=lambda p: 0 if p.pmcid else 1)
    if option is SortOption.RELEVANCE and query.strip():
        terms = query_terms(query)
        return sorted(publications, key=lambda p: -weighted_score(p, terms))
    return list(publications)


def related_publications(
    publication: Publication,
    publications: Sequence[Publication],
    limit: int = 3,
) -> list[Publication]:
    """Other publications sharing a long title word with the given one."""
    own_title = publication.title.lower()
    related = []
    for other in publications:
        if other.id == publication.id:
            continue
        words = other.title.lower().split(" ")
        if any(
            len(word) >= RELATED_TITLE_WORD_MIN_LENGTH and word in own_title
            for word in words
        ):
            related.append(other)
            if len(related) == limit:
                break
    return related


def paginate(
    publications: Sequence[Publication], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
) -> list[Publication]:
    """1-based page slice; out-of-range pages are empty."""
    if page < 1 or page_size < 1:
        return []
    start = (page - 1) * page_size
    return list(publications[start : start + page_size])

"""Inverted index over the publication corpus.

Maps lowercase token -> ascending list of publication positions (not ids).
The index is non-scoring: it answers "does publication i contain term t".
The same tokenize() is used at build and query time, otherwise lookups
silently miss.
"""

import logging
import re
from typing import Sequence

from publication_scout.constants import MIN_TOKEN_LENGTH
from publication_scout.models.model_publication import Publication

logger = logging.getLogger(__name__)

SearchIndex = dict[str, list[int]]

_NON_WORD = re.compile(r"\W+")


def tokenize(text: str) -> list[str]:
    """Lowercase, split on runs of non-word characters, drop short tokens.

    Order and repeats are preserved; callers deduplicate as needed.
    """
    if not text:
        return []
    return [t for t in _NON_WORD.split(text.lower()) if len(t) >= MIN_TOKEN_LENGTH]


def publication_tokens(publication: Publication) -> list[str]:
    """Distinct tokens of every indexed field, first-seen order."""
    fields = [
        publication.title,
        publication.abstract,
        *publication.keywords,
        *publication.authors,
        *publication.topics,
    ]
    return list(dict.fromkeys(token for field in fields for token in tokenize(field)))


def build_index(publications: Sequence[Publication]) -> SearchIndex:
    """Build a fresh index; positions refer to the given sequence."""
    index: SearchIndex = {}
    for position, publication in enumerate(publications):
        for token in publication_tokens(publication):
            index.setdefault(token, []).append(position)

    logger.debug(
        "Built search index: %d terms over %d publications",
        len(index),
        len(publications),
    )
    return index

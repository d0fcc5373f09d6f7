"""Lexical topic extraction.

Topics are the union of an explicit keyword field and every term of a fixed
domain vocabulary that occurs in the free text. No NLP; pure and deterministic.
"""

import re
from typing import Iterable

from publication_scout.constants import CURATED_LIST_DELIMITER, TOPIC_VOCABULARY


def split_field(value: str, delimiter: str = CURATED_LIST_DELIMITER) -> list[str]:
    """Split a delimited cell and trim each part, dropping empties."""
    if not value:
        return []
    return [part.strip() for part in value.split(delimiter) if part.strip()]


def find_vocabulary_terms(text: str, vocabulary: Iterable[str]) -> list[str]:
    """Return vocabulary terms occurring in text (case-insensitive substring)."""
    lowered = text.lower()
    return [term for term in vocabulary if term.lower() in lowered]


def find_labels(text: str, labels: dict[str, str]) -> list[str]:
    """Map terms found on word boundaries to their labels, first-seen order."""
    found: dict[str, None] = {}
    for term, label in labels.items():
        pattern = rf"(?<!\w){re.escape(term)}"
        if not term.endswith("-"):
            pattern += r"(?!\w)"
        if re.search(pattern, text, re.IGNORECASE):
            found.setdefault(label, None)
    return list(found)


def extract_topics(
    text: str,
    explicit_keywords: str = "",
    vocabulary: Iterable[str] = TOPIC_VOCABULARY,
    delimiter: str = CURATED_LIST_DELIMITER,
) -> list[str]:
    """Derive topics from free text and an explicit keyword field.

    Keyword-field topics come first, then vocabulary hits, deduplicated
    case-sensitively in first-seen order. No size limit is applied here.

    Args:
        text: Free text to scan (title and/or abstract).
        explicit_keywords: Delimited keyword cell, e.g. "bone loss; mice".
        vocabulary: Domain terms matched as case-insensitive substrings.
        delimiter: Separator used by explicit_keywords.

    Returns:
        Ordered list of unique, non-empty topics.
    """
    keyword_topics = split_field(explicit_keywords or "", delimiter)
    vocabulary_topics = find_vocabulary_terms(text or "", vocabulary)
    return list(dict.fromkeys(t for t in keyword_topics + vocabulary_topics if t))

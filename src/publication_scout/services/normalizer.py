"""
Record normalizer.

Turns raw spreadsheet/CSV rows into canonical Publication models. Two source
schemas are supported:

  scraped  PMC article scrape with "Title", "Authors" (comma-delimited),
           "Publication Date", "PMCID", "Section_<n>_Name", ...
  curated  hand-built export with id, title, authors (semicolon-delimited),
           year, keywords, topics, organisms, experiment_type, mission, platform

Every field access is defensive: a malformed row yields defaults, never an
exception. Duplicate removal keeps the first row per identity key and reports
the rest.
"""

import logging
import math
import re
from datetime import date
from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

from publication_scout.constants import (
    CURATED_LIST_DELIMITER,
    CURATED_ONLY_COLUMNS,
    EXPERIMENT_LABELS,
    MAX_TOPICS_PER_PUBLICATION,
    MISSION_LABELS,
    ORGANISM_LABELS,
    PLATFORM_LABELS,
    POSITIONAL_ID_PREFIX,
    SCRAPED_AUTHOR_DELIMITER,
    YES_SENTINEL,
)
from publication_scout.models.model_publication import Publication, Section
from publication_scout.services.topics import extract_topics, find_labels, split_field

logger = logging.getLogger(__name__)

_SECTION_NAME_KEY = re.compile(r"^Section_(\d+)_Name$")
_LEADING_INT = re.compile(r"^[+-]?\d+")


class RecordSchema(str, Enum):
    SCRAPED = "scraped"
    CURATED = "curated"


class DuplicateRecord(BaseModel):
    """A row dropped because an earlier row had the same identity."""

    row_index: int
    identity_key: str
    title: str
    kept_title: str


class NormalizationResult(BaseModel):
    """Output of normalize_records: the corpus plus diagnostics."""

    publications: list[Publication] = []
    duplicates: list[DuplicateRecord] = []
    missing_identity: list[int] = []  # row indices keyed only by position


# ------------------------------------------------------------------
# Field helpers
# ------------------------------------------------------------------


def _text(row: Mapping[str, Any], *names: str) -> str:
    """First non-blank value among the given column names, as a stripped str."""
    for name in names:
        value = row.get(name)
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def _flag(row: Mapping[str, Any], *names: str, default: bool = False) -> bool:
    value = _text(row, *names)
    if not value:
        return default
    return value == YES_SENTINEL


def parse_year(value: Any, current_year: int) -> int:
    """Best-effort year from a number or a date string such as "2017 Apr 11".

    Only the leading integer of the first whitespace token is used
    ("2017-04-11" -> 2017). Falls back to current_year; never raises.
    """
    if isinstance(value, bool):
        return current_year
    if isinstance(value, int):
        return value or current_year
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value else current_year
    text = str(value or "").strip()
    if not text:
        return current_year
    match = _LEADING_INT.match(text.split()[0])
    if not match:
        return current_year
    return int(match.group()) or current_year


def _scraped_sections(row: Mapping[str, Any]) -> list[Section]:
    raw = row.get("sections")
    if isinstance(raw, list):
        sections = []
        for item in raw:
            if not isinstance(item, Mapping):
                continue
            name = _text(item, "name")
            if name:
                sections.append(Section(name=name, content=_text(item, "content")))
        return sections

    numbered: list[tuple[int, Section]] = []
    for key in row:
        match = _SECTION_NAME_KEY.match(str(key))
        if not match:
            continue
        name = _text(row, key)
        if not name:
            continue
        n = int(match.group(1))
        content = _text(row, f"Section_{n}_Content")
        numbered.append((n, Section(name=name, content=content)))
    return [section for _, section in sorted(numbered, key=lambda pair: pair[0])]


def _bounded_topics(*groups: list[str]) -> list[str]:
    merged = dict.fromkeys(t for group in groups for t in group if t)
    return list(merged)[:MAX_TOPICS_PER_PUBLICATION]


def _first_or_none(values: list[str]) -> str | None:
    return values[0] if values else None


# ------------------------------------------------------------------
# Schema adapters
# ------------------------------------------------------------------


def detect_schema(row: Mapping[str, Any]) -> RecordSchema:
    """A row carrying any curated-only column is curated; otherwise scraped."""
    if any(key in CURATED_ONLY_COLUMNS for key in row):
        return RecordSchema.CURATED
    return RecordSchema.SCRAPED


def normalize_scraped_row(
    row: Mapping[str, Any], index: int, current_year: int
) -> Publication:
    """Adapt one row of the PMC scrape spreadsheet."""
    title = _text(row, "Title", "title")
    abstract = _text(row, "Abstract", "abstract")
    pmcid = _text(row, "PMCID", "pmcid")
    pmid = _text(row, "PMID", "pmid")
    doi = _text(row, "DOI", "doi")
    publication_date = _text(row, "Publication Date", "publicationDate")
    authors = _text(row, "Authors", "authors")
    free_text = f"{title} {abstract}"

    return Publication(
        id=pmcid or pmid or doi or f"{POSITIONAL_ID_PREFIX}{index}",
        title=title,
        original_title=_text(row, "Original Title", "originalTitle"),
        abstract=abstract,
        journal=_text(row, "Journal", "journal"),
        doi=doi,
        pmcid=pmcid,
        pmid=pmid,
        url=_text(row, "URL", "url"),
        authors=split_field(authors, SCRAPED_AUTHOR_DELIMITER),
        corresponding_author_email=_text(
            row, "Corresponding Author Email", "correspondingAuthorEmail"
        ),
        year=parse_year(publication_date, current_year),
        publication_date=publication_date,
        volume=_text(row, "Volume", "volume"),
        issue=_text(row, "Issue", "issue"),
        pages=_text(row, "Pages", "pages"),
        citation=_text(row, "Citation", "citation"),
        topics=_bounded_topics(extract_topics(free_text)),
        organisms=find_labels(abstract, ORGANISM_LABELS),
        experiment_type=find_labels(abstract, EXPERIMENT_LABELS),
        mission=_first_or_none(find_labels(free_text, MISSION_LABELS)),
        platform=_first_or_none(find_labels(free_text, PLATFORM_LABELS)),
        sections=_scraped_sections(row),
        full_text_available=_flag(row, "Full Text Available", "fullTextAvailable"),
        scraping_success=_flag(row, "Scraping Success", "scrapingSuccess"),
        error=_text(row, "Error", "error") or None,
    )


def normalize_curated_row(
    row: Mapping[str, Any], index: int, current_year: int
) -> Publication:
    """Adapt one row of the curated CSV export."""
    title = _text(row, "title")
    abstract = _text(row, "abstract")
    keywords = _text(row, "keywords")
    year_value = row.get("year")
    if not _text(row, "year"):
        year_value = _text(row, "publication_date", "publicationDate")

    return Publication(
        id=_text(row, "id") or f"{POSITIONAL_ID_PREFIX}{index}",
        title=title,
        abstract=abstract,
        journal=_text(row, "journal"),
        doi=_text(row, "doi"),
        pmcid=_text(row, "pmcid"),
        pmid=_text(row, "pmid"),
        url=_text(row, "url"),
        pdf_url=_text(row, "pdf_url", "pdfUrl"),
        authors=split_field(_text(row, "authors"), CURATED_LIST_DELIMITER),
        year=parse_year(year_value, current_year),
        volume=_text(row, "volume"),
        issue=_text(row, "issue"),
        pages=_text(row, "pages"),
        keywords=split_field(keywords, CURATED_LIST_DELIMITER),
        topics=_bounded_topics(
            split_field(_text(row, "topics")),
            extract_topics(f"{title} {abstract}", keywords),
        ),
        organisms=split_field(_text(row, "organisms")),
        experiment_type=split_field(_text(row, "experiment_type", "experimentType")),
        mission=_text(row, "mission") or None,
        platform=_text(row, "platform") or None,
        full_text_available=_flag(row, "full_text_available", default=True),
        scraping_success=_flag(row, "scraping_success", default=True),
    )


def normalize_row(
    row: Mapping[str, Any],
    index: int,
    current_year: int | None = None,
    schema: RecordSchema | None = None,
) -> Publication:
    """Normalize a single raw row, detecting its schema unless one is given."""
    year = current_year if current_year is not None else date.today().year
    schema = schema or detect_schema(row)
    if schema is RecordSchema.CURATED:
        return normalize_curated_row(row, index, year)
    return normalize_scraped_row(row, index, year)


# ------------------------------------------------------------------
# Corpus normalization + deduplication
# ------------------------------------------------------------------


def identity_key(publication: Publication) -> tuple[str, bool]:
    """Return (key, is_persistent) for duplicate detection.

    Preference: PMCID, PMID, an explicit curated id, DOI, and finally the
    positional id (not persistent).
    """
    if publication.pmcid:
        return f"pmcid:{publication.pmcid}", True
    if publication.pmid:
        return f"pmid:{publication.pmid}", True
    if (
        not publication.id.startswith(POSITIONAL_ID_PREFIX)
        and publication.id != publication.doi
    ):
        return f"id:{publication.id}", True
    if publication.doi:
        return f"doi:{publication.doi.lower()}", True
    return f"id:{publication.id}", False


def normalize_records(
    rows: Sequence[Mapping[str, Any]],
    current_year: int | None = None,
    schema: RecordSchema | None = None,
) -> NormalizationResult:
    """Normalize raw rows and drop duplicates, keeping the first occurrence.

    Args:
        rows: Raw key-value rows from a record source.
        current_year: Fallback year for unparseable dates. Defaults to today's
            year; pass it explicitly for deterministic output.
        schema: Force one schema for every row instead of detecting per row.

    Returns:
        NormalizationResult with the deduplicated publications and a report of
        dropped duplicates and rows with no persistent identity key.
    """
    year = current_year if current_year is not None else date.today().year
    result = NormalizationResult()
    kept_by_key: dict[str, Publication] = {}
    kept_by_id: dict[str, Publication] = {}

    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("Skipping row %d: not a mapping (%s)", index, type(row))
            continue
        publication = normalize_row(row, index, year, schema)
        key, persistent = identity_key(publication)

        earlier = kept_by_key.get(key) or kept_by_id.get(publication.id)
        if earlier is not None:
            logger.warning(
                "Dropping duplicate row %d (%s): %r already kept as %r",
                index,
                key,
                publication.title,
                earlier.title,
            )
            result.duplicates.append(
                DuplicateRecord(
                    row_index=index,
                    identity_key=key,
                    title=publication.title,
                    kept_title=earlier.title,
                )
            )
            continue

        if not persistent:
            logger.warning(
                "Row %d has no PMCID, id or DOI; keyed by position as %s",
                index,
                publication.id,
            )
            result.missing_identity.append(index)

        kept_by_key[key] = publication
        kept_by_id[publication.id] = publication
        result.publications.append(publication)

    logger.info(
        "Normalized %d rows into %d publications (%d duplicates dropped)",
        len(rows),
        len(result.publications),
        len(result.duplicates),
    )
    return result

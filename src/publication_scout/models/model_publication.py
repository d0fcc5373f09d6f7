"""
Pydantic models for publication records and search filters.

These are the data contracts between the normalizer and every downstream
service. Services receive these models and never see raw spreadsheet rows.
"""

from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, model_validator

from publication_scout.constants import DEFAULT_END_YEAR, DEFAULT_START_YEAR


class InvalidFilterError(ValueError):
    """Raised when a filter's year range is inverted."""

    pass


# ------------------------------------------------------------------
# Publication
# ------------------------------------------------------------------


class Section(BaseModel):
    """A named full-text section scraped from the article page."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: str = ""


class Publication(BaseModel):
    """Canonical publication record, immutable once normalized."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    original_title: str = ""
    abstract: str = ""
    journal: str = ""
    doi: str = ""
    pmcid: str = ""
    pmid: str = ""
    url: str = ""
    pdf_url: str = ""
    authors: tuple[str, ...] = ()
    corresponding_author_email: str = ""
    year: int = 0
    publication_date: str = ""
    volume: str = ""
    issue: str = ""
    pages: str = ""
    citation: str = ""
    keywords: tuple[str, ...] = ()
    topics: tuple[str, ...] = ()  # deduplicated, insertion-ordered
    organisms: tuple[str, ...] = ()
    experiment_type: tuple[str, ...] = ()
    mission: str | None = None
    platform: str | None = None
    sections: tuple[Section, ...] = ()
    full_text_available: bool = False
    scraping_success: bool = False
    error: str | None = None

    @property
    def doi_url(self) -> str:
        if not self.doi:
            return ""
        return self.doi if self.doi.startswith("http") else f"https://doi.org/{self.doi}"

    def citation_text(self) -> str:
        """APA-style citation used by the "copy citation" action."""
        text = f"{', '.join(self.authors)} ({self.year}). {self.title}. {self.journal}"
        if self.volume:
            text += f", {self.volume}"
        if self.issue:
            text += f"({self.issue})"
        if self.pages:
            text += f", {self.pages}"
        text += "."
        if self.doi:
            text += f" {self.doi_url}"
        return text


class PublicationSummary(BaseModel):
    """Compact card view of a publication."""

    id: str
    title: str
    authors: tuple[str, ...] = ()
    year: int
    abstract: str  # truncated preview
    topics: tuple[str, ...] = ()
    full_text_available: bool = False


def format_authors(authors: Sequence[str], limit: int = 3) -> str:
    """Return a display string such as "A, B, C and 2 more"."""
    if not authors:
        return "Unknown"
    if len(authors) == 1:
        return authors[0]
    shown = ", ".join(authors[:limit])
    remaining = len(authors) - limit
    return f"{shown} and {remaining} more" if remaining > 0 else shown


# ------------------------------------------------------------------
# Filters
# ------------------------------------------------------------------


class SearchFilters(BaseModel):
    """Conjunctive filter over the corpus.

    An empty set for a dimension means "no constraint on that dimension".
    """

    model_config = ConfigDict(frozen=True)

    years: tuple[int, int] = (DEFAULT_START_YEAR, DEFAULT_END_YEAR)
    topics: frozenset[str] = frozenset()
    organisms: frozenset[str] = frozenset()
    experiment_types: frozenset[str] = frozenset()
    missions: frozenset[str] = frozenset()
    platforms: frozenset[str] = frozenset()

    @model_validator(mode="after")
    def check_year_range(self) -> "SearchFilters":
        start, end = self.years
        if start > end:
            raise InvalidFilterError(
                f"start year {start} is after end year {end}"
            )
        return self

    @classmethod
    def spanning(cls, publications: Iterable[Publication]) -> "SearchFilters":
        """Unconstrained filter whose year range covers every given publication."""
        years = [p.year for p in publications]
        if not years:
            return cls()
        return cls(years=(min(years), max(years)))

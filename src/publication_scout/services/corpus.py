"""Corpus snapshots and the store that swaps them.

A Corpus is an immutable snapshot: publications plus the search index built
from exactly that sequence. Reloading builds a complete new snapshot and then
replaces the store's reference in one assignment, so readers see either the
old snapshot or the new one, never a partial index.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from publication_scout.config import get_settings
from publication_scout.data_sources.base_client import LoadError, RecordSource
from publication_scout.data_sources.publications_api import PublicationsApiClient
from publication_scout.data_sources.spreadsheet import SpreadsheetSource
from publication_scout.models.model_publication import Publication
from publication_scout.services.normalizer import (
    DuplicateRecord,
    NormalizationResult,
    normalize_records,
)
from publication_scout.services.search_index import SearchIndex, build_index

logger = logging.getLogger(__name__)


class CorpusNotLoadedError(RuntimeError):
    """Raised when the store is read before any load succeeded."""

    pass


@dataclass(frozen=True)
class Corpus:
    """Publications and their index, built together and never mutated."""

    publications: tuple[Publication, ...]
    index: Mapping[str, tuple[int, ...]]
    duplicates: tuple[DuplicateRecord, ...] = ()
    missing_identity: tuple[int, ...] = ()
    by_id: Mapping[str, Publication] = field(default_factory=dict)

    @classmethod
    def from_normalized(cls, result: NormalizationResult) -> "Corpus":
        publications = tuple(result.publications)
        return cls(
            publications=publications,
            index=_freeze_index(build_index(publications)),
            duplicates=tuple(result.duplicates),
            missing_identity=tuple(result.missing_identity),
            by_id=MappingProxyType({pub.id: pub for pub in publications}),
        )

    def __len__(self) -> int:
        return len(self.publications)

    def get(self, publication_id: str) -> Publication | None:
        return self.by_id.get(publication_id)


def _freeze_index(index: SearchIndex) -> Mapping[str, tuple[int, ...]]:
    return MappingProxyType({term: tuple(positions) for term, positions in index.items()})


def source_from_settings() -> RecordSource:
    """The configured publications endpoint if set, else the spreadsheet files."""
    settings = get_settings()
    if settings.publications_url:
        return PublicationsApiClient(settings.publications_url)
    return SpreadsheetSource([settings.data_file, settings.data_backup_file])


def build_corpus(
    rows: Sequence[Mapping[str, Any]], current_year: int | None = None
) -> Corpus:
    """Normalize raw rows and index the result.

    Raises:
        LoadError: if the rows yield no publications.
    """
    result = normalize_records(rows, current_year=current_year)
    if not result.publications:
        raise LoadError("corpus", "Record source returned no usable publications")
    return Corpus.from_normalized(result)


class CorpusStore:
    """Holds the current Corpus for one session or application."""

    def __init__(self, corpus: Corpus | None = None):
        self._corpus = corpus
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._corpus is not None

    @property
    def current(self) -> Corpus:
        if self._corpus is None:
            raise CorpusNotLoadedError("No corpus has been loaded")
        return self._corpus

    def replace(self, corpus: Corpus) -> Corpus | None:
        """Swap in a fully built snapshot; returns the previous one if any."""
        previous = self._corpus
        self._corpus = corpus
        logger.info("Corpus swapped in: %d publications", len(corpus))
        return previous

    async def load(self, source: RecordSource, current_year: int | None = None) -> Corpus:
        """Fetch rows, build a snapshot off the event loop, then swap it in.

        On failure the previous snapshot stays current and LoadError propagates.
        """
        async with self._lock:
            try:
                rows = await source.fetch_rows()
                corpus = await asyncio.to_thread(build_corpus, rows, current_year)
            except LoadError as e:
                logger.error("Corpus load failed: %s", e)
                raise
            self.replace(corpus)
            if corpus.duplicates or corpus.missing_identity:
                logger.info(
                    "Load dropped %d duplicates; %d records had no identity key",
                    len(corpus.duplicates),
                    len(corpus.missing_identity),
                )
            return corpus

"""Unit tests for corpus snapshots and the corpus store."""

from typing import Any
from unittest.mock import patch

import pytest

from publication_scout.config import Settings
from publication_scout.data_sources.base_client import LoadError, RecordSource
from publication_scout.data_sources.publications_api import PublicationsApiClient
from publication_scout.data_sources.spreadsheet import SpreadsheetSource
from publication_scout.services.corpus import (
    CorpusNotLoadedError,
    CorpusStore,
    build_corpus,
    source_from_settings,
)


class StaticSource(RecordSource):
    """Record source serving fixed rows, or failing on demand."""

    def __init__(self, rows: list[dict[str, Any]], fail: bool = False):
        self.rows = rows
        self.fail = fail
        self.calls = 0

    @property
    def _source_name(self) -> str:
        return "static"

    async def fetch_rows(self) -> list[dict[str, Any]]:
        self.calls += 1
        if self.fail:
            raise LoadError(self._source_name, "unavailable")
        return self.rows


def test_build_corpus(scraped_row, curated_row):
    corpus = build_corpus([scraped_row, curated_row, dict(scraped_row)], current_year=2024)

    assert len(corpus) == 2
    assert [p.id for p in corpus.publications] == ["PMC5460000", "curated-7"]
    assert len(corpus.duplicates) == 1
    assert corpus.get("curated-7").title == curated_row["title"]
    assert corpus.get("missing") is None


def test_corpus_index_matches_its_publications(scraped_row, curated_row):
    corpus = build_corpus([scraped_row, curated_row], current_year=2024)

    assert corpus.index["microgravity"] == (0, 1)
    assert corpus.index["arabidopsis"] == (1,)


def test_corpus_is_immutable(scraped_row):
    corpus = build_corpus([scraped_row], current_year=2024)

    with pytest.raises(TypeError):
        corpus.index["new"] = (0,)  # type: ignore[index]
    with pytest.raises(AttributeError):
        corpus.publications = ()  # type: ignore[misc]


@pytest.mark.parametrize("rows", [[], ["not a row"]])
def test_empty_load_is_an_error(rows):
    with pytest.raises(LoadError, match="no usable publications"):
        build_corpus(rows)


def test_unloaded_store_raises():
    store = CorpusStore()

    assert not store.loaded
    with pytest.raises(CorpusNotLoadedError):
        store.current


async def test_load_swaps_snapshot(scraped_row, curated_row):
    store = CorpusStore()
    first = await store.load(StaticSource([scraped_row]), current_year=2024)

    assert store.current is first
    assert len(first) == 1

    second = await store.load(StaticSource([scraped_row, curated_row]), current_year=2024)

    assert store.current is second
    # Readers holding the old snapshot still see a consistent corpus
    assert len(first) == 1
    assert set(first.index["microgravity"]) == {0}


async def test_failed_load_keeps_previous_snapshot(scraped_row):
    store = CorpusStore()
    loaded = await store.load(StaticSource([scraped_row]), current_year=2024)

    with pytest.raises(LoadError):
        await store.load(StaticSource([], fail=True))

    assert store.current is loaded


async def test_load_of_empty_rows_fails_without_swapping(scraped_row):
    store = CorpusStore()

    with pytest.raises(LoadError):
        await store.load(StaticSource([]))
    assert not store.loaded


def test_replace_returns_previous(scraped_row):
    store = CorpusStore()
    corpus = build_corpus([scraped_row], current_year=2024)

    assert store.replace(corpus) is None
    assert store.replace(corpus) is corpus


def test_source_from_settings_prefers_url():
    settings = Settings(publications_url="https://example.org/publications.json")
    with patch("publication_scout.services.corpus.get_settings", return_value=settings):
        source = source_from_settings()

    assert isinstance(source, PublicationsApiClient)
    assert source.url == "https://example.org/publications.json"


def test_source_from_settings_defaults_to_spreadsheet():
    settings = Settings(publications_url="", data_file="a.xlsx", data_backup_file="b.csv")
    with patch("publication_scout.services.corpus.get_settings", return_value=settings):
        source = source_from_settings()

    assert isinstance(source, SpreadsheetSource)
    assert [p.name for p in source.paths] == ["a.xlsx", "b.csv"]

"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel

from publication_scout import __version__
from publication_scout.config import get_settings
from publication_scout.constants import DEFAULT_END_YEAR, DEFAULT_PAGE_SIZE, DEFAULT_START_YEAR
from publication_scout.data_sources.base_client import LoadError
from publication_scout.models.model_analytics import (
    CorpusInsights,
    FilterOptions,
    ResearchGap,
    TopicDistribution,
    YearlyStats,
)
from publication_scout.models.model_publication import SearchFilters
from publication_scout.models.model_summary import AISummary
from publication_scout.services import ai_summary
from publication_scout.services.analytics import (
    calculate_topic_distribution,
    calculate_yearly_stats,
    identify_research_gaps,
    publication_summaries,
    summarize_corpus,
)
from publication_scout.services.corpus import (
    Corpus,
    CorpusNotLoadedError,
    CorpusStore,
    source_from_settings,
)
from publication_scout.services.filters import filter_publications, get_filter_options
from publication_scout.services.search import (
    SearchMode,
    SortOption,
    paginate,
    related_publications,
    search_publications,
    sort_publications,
)

logger = logging.getLogger(__name__)


async def reload_corpus(store: CorpusStore) -> Corpus:
    source = source_from_settings()
    try:
        return await store.load(source)
    finally:
        await source.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    try:
        await reload_corpus(app.state.store)
    except LoadError:
        # Served as 503 until a reload succeeds
        logger.exception("Initial corpus load failed")
    yield


app = FastAPI(
    title="PublicationScout API",
    description="Search, filter and analyze space-biology research publications",
    version=__version__,
    lifespan=lifespan,
)
app.state.store = CorpusStore()


def get_store(request: Request) -> CorpusStore:
    return request.app.state.store


def get_corpus(store: CorpusStore = Depends(get_store)) -> Corpus:
    try:
        return store.current
    except CorpusNotLoadedError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def get_filters(
    year_start: int = DEFAULT_START_YEAR,
    year_end: int = DEFAULT_END_YEAR,
    topic: list[str] = Query(default=[]),
    organism: list[str] = Query(default=[]),
    experiment_type: list[str] = Query(default=[]),
    mission: list[str] = Query(default=[]),
    platform: list[str] = Query(default=[]),
) -> SearchFilters:
    try:
        return SearchFilters(
            years=(year_start, year_end),
            topics=frozenset(topic),
            organisms=frozenset(organism),
            experiment_types=frozenset(experiment_type),
            missions=frozenset(mission),
            platforms=frozenset(platform),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


class SummaryRequest(BaseModel):
    abstract: str


class SemanticSearchRequest(BaseModel):
    query: str
    limit: int = DEFAULT_PAGE_SIZE


@app.get("/health")
async def health_check(store: CorpusStore = Depends(get_store)) -> dict[str, str | int]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "publications": len(store.current) if store.loaded else 0,
    }


@app.get("/publications")
async def list_publications(
    q: str = "",
    mode: SearchMode = SearchMode.INDEXED,
    sort: SortOption = SortOption.RELEVANCE,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    filters: SearchFilters = Depends(get_filters),
    corpus: Corpus = Depends(get_corpus),
) -> dict:
    """Search, then filter, then sort, then paginate."""
    results = search_publications(corpus.publications, q, mode, corpus.index)
    results = filter_publications(results, filters)
    if not (sort is SortOption.RELEVANCE and mode is SearchMode.INDEXED):
        results = sort_publications(results, sort, q)
    return {
        "total": len(results),
        "page": page,
        "page_size": page_size,
        "results": publication_summaries(paginate(results, page, page_size)),
    }


@app.get("/publications/{publication_id}")
async def get_publication(
    publication_id: str, corpus: Corpus = Depends(get_corpus)
) -> dict:
    publication = corpus.get(publication_id)
    if publication is None:
        raise HTTPException(status_code=404, detail=f"Unknown publication: {publication_id}")
    related = related_publications(publication, corpus.publications)
    return {
        "publication": publication,
        "doi_url": publication.doi_url,
        "citation": publication.citation_text(),
        "related": publication_summaries(related),
    }


@app.get("/filter-options")
async def filter_options(corpus: Corpus = Depends(get_corpus)) -> FilterOptions:
    return get_filter_options(corpus.publications)


@app.get("/stats/topics")
async def topic_stats(corpus: Corpus = Depends(get_corpus)) -> list[TopicDistribution]:
    return calculate_topic_distribution(corpus.publications)


@app.get("/stats/years")
async def year_stats(corpus: Corpus = Depends(get_corpus)) -> list[YearlyStats]:
    return calculate_yearly_stats(corpus.publications)


@app.get("/gaps")
async def research_gaps(corpus: Corpus = Depends(get_corpus)) -> list[ResearchGap]:
    return identify_research_gaps(corpus.publications)


@app.get("/insights")
async def insights(corpus: Corpus = Depends(get_corpus)) -> CorpusInsights:
    return summarize_corpus(corpus.publications)


@app.post("/ai/summary")
async def ai_summarize(request: SummaryRequest) -> AISummary:
    return await ai_summary.generate_summary(request.abstract)


@app.post("/ai/search")
async def ai_search(
    request: SemanticSearchRequest, corpus: Corpus = Depends(get_corpus)
) -> dict:
    ranked = await ai_summary.semantic_search(request.query, corpus.publications)
    return {
        "total": len(ranked),
        "results": publication_summaries(ranked[: request.limit]),
    }


@app.get("/ai/gaps")
async def ai_gaps(corpus: Corpus = Depends(get_corpus)) -> list[ResearchGap]:
    return await ai_summary.identify_gaps(corpus.publications)


@app.post("/corpus/reload")
async def corpus_reload(store: CorpusStore = Depends(get_store)) -> dict[str, int]:
    try:
        corpus = await reload_corpus(store)
    except LoadError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {
        "publications": len(corpus),
        "duplicates": len(corpus.duplicates),
        "missing_identity": len(corpus.missing_identity),
    }

"""Command-line interface for PublicationScout."""

import asyncio
import json
import logging
from pathlib import Path

import click

from publication_scout.config import get_settings
from publication_scout.constants import DEFAULT_PAGE_SIZE
from publication_scout.data_sources.base_client import LoadError
from publication_scout.data_sources.spreadsheet import SpreadsheetSource
from publication_scout.models.model_publication import SearchFilters, format_authors
from publication_scout.services import ai_summary
from publication_scout.services.analytics import (
    calculate_topic_distribution,
    calculate_yearly_stats,
    identify_research_gaps,
)
from publication_scout.services.corpus import Corpus, build_corpus
from publication_scout.services.filters import filter_publications
from publication_scout.services.search import (
    SearchMode,
    SortOption,
    search_publications,
    sort_publications,
)

data_option = click.option(
    "--data",
    "data_path",
    type=click.Path(dir_okay=False),
    help="Spreadsheet or CSV export (default: DATA_FILE, then DATA_BACKUP_FILE)",
)


def load_corpus(data_path: str | None) -> Corpus:
    source = SpreadsheetSource([data_path]) if data_path else SpreadsheetSource.from_settings()
    try:
        return build_corpus(source.read_rows())
    except LoadError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="publication-scout")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")
def main(verbose: bool):
    """PublicationScout: explore space-biology research publications."""
    logging.basicConfig(level="DEBUG" if verbose else get_settings().log_level)


@main.command()
@click.argument("query", default="")
@data_option
@click.option(
    "-m",
    "--mode",
    type=click.Choice([m.value for m in SearchMode]),
    default=SearchMode.INDEXED.value,
    show_default=True,
)
@click.option(
    "-s",
    "--sort",
    "sort_option",
    type=click.Choice([s.value for s in SortOption]),
    default=SortOption.RELEVANCE.value,
    show_default=True,
)
@click.option("--year-start", type=int, help="Earliest publication year")
@click.option("--year-end", type=int, help="Latest publication year")
@click.option("-t", "--topic", "topics", multiple=True, help="Topic filter (repeatable)")
@click.option("--organism", "organisms", multiple=True, help="Organism filter (repeatable)")
@click.option(
    "-n",
    "--top-n",
    default=DEFAULT_PAGE_SIZE,
    show_default=True,
    help="Number of results to show",
)
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def search(
    query: str,
    data_path: str | None,
    mode: str,
    sort_option: str,
    year_start: int | None,
    year_end: int | None,
    topics: tuple[str, ...],
    organisms: tuple[str, ...],
    top_n: int,
    output: str | None,
):
    """Search publications, optionally filtered by year, topic and organism."""
    corpus = load_corpus(data_path)
    spanning = SearchFilters.spanning(corpus.publications)
    try:
        filters = SearchFilters(
            years=(
                spanning.years[0] if year_start is None else year_start,
                spanning.years[1] if year_end is None else year_end,
            ),
            topics=frozenset(topics),
            organisms=frozenset(organisms),
        )
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--year-start/--year-end") from e

    search_mode = SearchMode(mode)
    results = search_publications(corpus.publications, query, search_mode, corpus.index)
    results = filter_publications(results, filters)
    sort = SortOption(sort_option)
    if not (sort is SortOption.RELEVANCE and search_mode is SearchMode.INDEXED):
        results = sort_publications(results, sort, query)

    click.echo(f"{len(results)} of {len(corpus)} publications match")
    for i, pub in enumerate(results[:top_n], 1):
        click.echo(f"  {i}. [{pub.year}] {pub.title}")
        click.echo(f"     {format_authors(pub.authors)}")

    if output:
        Path(output).write_text(
            json.dumps(
                {
                    "query": query,
                    "total": len(results),
                    "results": [pub.model_dump(mode="json") for pub in results[:top_n]],
                },
                indent=2,
            )
        )
        click.echo(f"\nResults saved to: {output}")


@main.command()
@data_option
@click.option("-n", "--top-n", default=10, show_default=True, help="Topics to list")
def stats(data_path: str | None, top_n: int):
    """Topic distribution and publications per year."""
    corpus = load_corpus(data_path)

    click.echo(f"Publications: {len(corpus)}")
    click.echo("\nTop topics:")
    for entry in calculate_topic_distribution(corpus.publications)[:top_n]:
        click.echo(f"  {entry.topic}: {entry.count}")

    click.echo("\nBy year:")
    for year in calculate_yearly_stats(corpus.publications):
        top = ", ".join(t.topic for t in year.top_topics) or "-"
        click.echo(f"  {year.year}: {year.publication_count} ({top})")


@main.command()
@data_option
@click.option("--ai", "use_ai", is_flag=True, help="Ask the language model first")
def gaps(data_path: str | None, use_ai: bool):
    """List research gaps, most severe first."""
    corpus = load_corpus(data_path)
    if use_ai:
        found = asyncio.run(ai_summary.identify_gaps(corpus.publications))
    else:
        found = identify_research_gaps(corpus.publications)

    if not found:
        click.echo("No research gaps found.")
        return
    for gap in found:
        click.echo(f"  {gap.topic} (severity: {gap.severity:.2f})")
        if gap.description:
            click.echo(f"     {gap.description}")
        if gap.related_topics:
            click.echo(f"     related: {', '.join(gap.related_topics)}")


@main.command()
@click.argument("publication_id")
@data_option
def summarize(publication_id: str, data_path: str | None):
    """Summarize one publication's abstract."""
    corpus = load_corpus(data_path)
    publication = corpus.get(publication_id)
    if publication is None:
        raise click.ClickException(f"Unknown publication: {publication_id}")

    summary = asyncio.run(ai_summary.generate_summary(publication.abstract))
    click.echo(publication.title)
    click.echo(f"\n{summary.one_line_summary}")
    click.echo("\nKey findings:")
    for finding in summary.key_findings:
        click.echo(f"  - {finding}")
    click.echo(f"\nMission relevance: {summary.mission_relevance}")
    if summary.gap_areas:
        click.echo("\nGap areas:")
        for area in summary.gap_areas:
            click.echo(f"  - {area}")


if __name__ == "__main__":
    main()

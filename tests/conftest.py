"""Pytest configuration and fixtures."""

from unittest.mock import patch

import pytest

from publication_scout.models.model_publication import Publication
from publication_scout.utils.cache import JsonCache


@pytest.fixture(autouse=True)
def no_summary_cache():
    """Keep oracle summaries out of the on-disk cache during tests."""
    with patch(
        "publication_scout.services.ai_summary._summary_cache",
        return_value=JsonCache(enabled=False),
    ):
        yield


@pytest.fixture
def three_publications() -> list[Publication]:
    """P1/P2/P3: bone loss 2010, bone loss + radiation 2015, radiation 2020."""
    return [
        Publication(
            id="P1",
            title="bone density study",
            abstract="Hindlimb unloading reduced femur mass in mice.",
            authors=["Smith J"],
            year=2010,
            topics=["bone loss"],
            organisms=["mice"],
            mission="ISS",
        ),
        Publication(
            id="P2",
            title="bone density study",
            abstract="Cosmic rays compounded skeletal decline in rats.",
            authors=["Jones K", "Lee M"],
            year=2015,
            topics=["bone loss", "radiation"],
            organisms=["rat"],
            pmcid="PMC200",
        ),
        Publication(
            id="P3",
            title="Heavy ion exposure and neuronal damage",
            abstract="Charged particles impaired hippocampal function.",
            authors=["Garcia A"],
            year=2020,
            topics=["radiation"],
            organisms=["mice"],
            platform="Spacecraft",
        ),
    ]


@pytest.fixture
def scraped_row() -> dict:
    """One row of the PMC scrape spreadsheet."""
    return {
        "Title": "Microgravity induces bone loss in mice aboard the International Space Station",
        "Original Title": "Microgravity induces bone loss in mice",
        "Abstract": (
            "Spaceflight exposure caused bone loss and muscle atrophy in mice. "
            "Ground control animals were housed on Earth."
        ),
        "Authors": "Smith J, Doe A, Roe B",
        "Publication Date": "2017 Apr 11",
        "Journal": "NPJ Microgravity",
        "DOI": "10.1038/s41526-017-0001",
        "PMCID": "PMC5460000",
        "PMID": "28000001",
        "URL": "https://www.ncbi.nlm.nih.gov/pmc/articles/PMC5460000/",
        "Volume": "3",
        "Issue": "1",
        "Pages": "12",
        "Full Text Available": "Yes",
        "Scraping Success": "Yes",
        "Error": "",
        "Section_2_Name": "Methods",
        "Section_2_Content": "Mice were flown for 30 days.",
        "Section_1_Name": "Introduction",
        "Section_1_Content": "Bone loss is a known hazard.",
        "Section_3_Name": "",
        "Section_3_Content": "orphaned",
    }


@pytest.fixture
def curated_row() -> dict:
    """One row of the curated CSV export."""
    return {
        "id": "curated-7",
        "title": "Plant root growth under simulated microgravity",
        "abstract": "Arabidopsis seedlings were grown on a clinostat.",
        "authors": "Kiss J; Edelmann R",
        "year": "2019",
        "journal": "Plants",
        "doi": "10.3390/plants8010001",
        "keywords": "gravitropism; roots",
        "topics": "plants",
        "organisms": "Arabidopsis thaliana",
        "experiment_type": "Clinostat",
        "mission": "Ground Control",
        "platform": "Laboratory",
    }

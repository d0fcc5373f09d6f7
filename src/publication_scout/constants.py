"""Project-wide constants."""

from pathlib import Path

# -- Cache ------------------------------------------------------------------
# Anchored to the project root (two levels above this package's src/ dir) so
# that a single _cache/ directory is used regardless of the working directory
# from which tests or scripts are launched.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
CACHE_TTL: int = 5 * 86400  # 5 days in seconds

# -- Remote record source ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_MAX_RETRIES: int = 3

# -- Normalizer -------------------------------------------------------------
POSITIONAL_ID_PREFIX: str = "pub-"
MAX_TOPICS_PER_PUBLICATION: int = 8
YES_SENTINEL: str = "Yes"
SCRAPED_AUTHOR_DELIMITER: str = ","
CURATED_LIST_DELIMITER: str = ";"

# Columns that only appear in the curated export. A row carrying any of them
# is normalized with the curated adapter.
CURATED_ONLY_COLUMNS: frozenset[str] = frozenset(
    {
        "id",
        "year",
        "keywords",
        "topics",
        "organisms",
        "experiment_type",
        "experimentType",
        "mission",
        "platform",
    }
)

# -- Topic vocabulary -------------------------------------------------------
# Matched as case-insensitive substrings of title + abstract.
TOPIC_VOCABULARY: tuple[str, ...] = (
    "microgravity",
    "radiation",
    "space flight",
    "bone loss",
    "muscle atrophy",
    "cardiovascular",
    "immune system",
    "plants",
    "microbiome",
    "neuroscience",
    "genetics",
    "cell biology",
    "physiology",
    "behavior",
    "development",
)

# Free-text derived labels for the scraped schema (no curated columns there).
# term (matched on word boundaries, case-insensitive) -> organism label
ORGANISM_LABELS: dict[str, str] = {
    "mouse": "mice",
    "mice": "mice",
    "murine": "mice",
    "rat": "rat",
    "rats": "rat",
    "human": "human",
    "humans": "human",
    "astronaut": "human",
    "astronauts": "human",
    "bacteria": "bacteria",
    "bacterial": "bacteria",
    "plant": "plant",
    "plants": "plant",
    "arabidopsis": "arabidopsis",
    "drosophila": "drosophila",
    "c. elegans": "c. elegans",
    "caenorhabditis elegans": "c. elegans",
    "zebrafish": "zebrafish",
    "yeast": "yeast",
    "cells": "cells",
}

EXPERIMENT_LABELS: dict[str, str] = {
    "spaceflight": "spaceflight",
    "space flight": "spaceflight",
    "simulated microgravity": "simulated microgravity",
    "hindlimb unloading": "hindlimb unloading",
    "hindlimb unloaded": "hindlimb unloading",
    "bed rest": "bed rest",
    "clinostat": "clinostat",
    "ground control": "ground control",
    "cell culture": "cell culture",
    "radiation exposure": "radiation exposure",
}

# term (matched on word boundaries, case-insensitive) -> mission label
MISSION_LABELS: dict[str, str] = {
    "international space station": "ISS",
    "iss": "ISS",
    "space shuttle": "Space Shuttle",
    "sts-": "Space Shuttle",
    "bion-m1": "Bion-M1",
    "rodent research": "Rodent Research",
    "ground control": "Ground Control",
}

PLATFORM_LABELS: dict[str, str] = {
    "space station": "Space Station",
    "spacecraft": "Spacecraft",
    "laboratory": "Laboratory",
    "sounding rocket": "Sounding Rocket",
    "parabolic flight": "Parabolic Flight",
}

# -- Search -----------------------------------------------------------------
MIN_TOKEN_LENGTH: int = 3
TITLE_WEIGHT: int = 3
ABSTRACT_WEIGHT: int = 1
KEYWORD_WEIGHT: int = 2
AUTHOR_WEIGHT: int = 2
RELATED_TITLE_WORD_MIN_LENGTH: int = 5
DEFAULT_PAGE_SIZE: int = 12

# Year bounds of an unconstrained filter.
DEFAULT_START_YEAR: int = 0
DEFAULT_END_YEAR: int = 9999

# -- Analytics --------------------------------------------------------------
TOP_TOPICS_PER_YEAR: int = 5
LOW_COVERAGE_THRESHOLD: int = 5
FALLBACK_LOW_COVERAGE_THRESHOLD: int = 3
TREND_WINDOW_YEARS: int = 5
MIN_TREND_HISTORY_YEARS: int = 3
# Fixed, not derived from the data.
DECLINING_TREND_SEVERITY: float = 0.7
RELATED_TOPICS_LIMIT: int = 5
FALLBACK_RELATED_TOPICS_LIMIT: int = 3
ABSTRACT_PREVIEW_LENGTH: int = 200

# -- AI summary -------------------------------------------------------------
ORACLE_GAP_SAMPLE_SIZE: int = 20
ORACLE_ABSTRACT_EXCERPT: int = 200

SUMMARY_KEYWORDS: tuple[str, ...] = (
    "microgravity",
    "radiation",
    "bone loss",
    "muscle atrophy",
    "cardiovascular",
    "immune system",
    "plants",
    "microbiome",
    "neuroscience",
    "genetics",
    "cell biology",
    "physiology",
    "behavior",
    "development",
    "astronaut health",
    "Mars missions",
    "Moon missions",
    "ISS",
    "space station",
    "lunar habitat",
    "bioregenerative",
    "countermeasures",
    "adaptation",
    "space medicine",
)

SUMMARY_FILLER_WORDS: frozenset[str] = frozenset(
    {"research", "study", "results", "analysis", "significant"}
)

DEFAULT_ONE_LINE_SUMMARY: str = (
    "Research investigating effects of space environment on biological systems"
)
DEFAULT_KEY_FINDINGS: tuple[str, ...] = (
    "Significant changes observed in space conditions",
    "Adaptation mechanisms identified",
    "Implications for astronaut health",
)
DEFAULT_MISSION_RELEVANCE: str = (
    "This research has implications for long-duration space missions"
)

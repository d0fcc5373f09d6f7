"""Analytics data models: topic distribution, yearly stats, research gaps."""

from pydantic import BaseModel, Field, field_validator


class TopicDistribution(BaseModel):
    """How many publications carry a topic, and which ones."""

    topic: str
    count: int
    publications: list[str] = []  # publication ids


class TopicCount(BaseModel):
    topic: str
    count: int


class YearlyStats(BaseModel):
    """Publication count and most frequent topics for one year."""

    year: int
    publication_count: int
    top_topics: list[TopicCount] = []  # at most 5, ranked


class ResearchGap(BaseModel):
    """An under-researched or declining topic.

    Severity is recomputed on every analysis run; it is not authoritative.
    """

    topic: str
    severity: float = Field(ge=0.0, le=1.0)
    related_topics: list[str] = []
    description: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def clamp_severity(cls, value: object) -> float:
        try:
            severity = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0
        return min(max(severity, 0.0), 1.0)


class FilterOption(BaseModel):
    value: str
    count: int


class FilterOptions(BaseModel):
    """Sorted unique values per filter dimension, with publication counts."""

    years: list[int] = []
    topics: list[FilterOption] = []
    organisms: list[FilterOption] = []
    experiment_types: list[FilterOption] = []
    missions: list[FilterOption] = []
    platforms: list[FilterOption] = []


class CorpusInsights(BaseModel):
    """High-level, human-readable observations about the corpus."""

    timespan: str
    topic_focus: str
    organisms: str
    trends: str
    gaps: str
    recommendations: str

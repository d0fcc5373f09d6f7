"""AI summary data model."""

from pydantic import BaseModel


class AISummary(BaseModel):
    """Structured summary of one abstract, from the oracle or the local heuristic."""

    one_line_summary: str
    key_findings: list[str] = []
    mission_relevance: str = ""
    gap_areas: list[str] | None = None

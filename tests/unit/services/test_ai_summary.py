"""Unit tests for the AI summary adapter and its local fallbacks."""

from unittest.mock import AsyncMock, patch

import anthropic
import httpx
import pytest

from publication_scout.constants import DEFAULT_KEY_FINDINGS, DEFAULT_ONE_LINE_SUMMARY
from publication_scout.services.ai_summary import (
    RequestEpoch,
    StaleResponseError,
    extract_keywords,
    extract_list_items,
    extract_section,
    generate_summary,
    identify_gaps,
    local_gaps,
    parse_gaps,
    parse_ranked_ids,
    parse_summary,
    rank_locally,
    semantic_search,
    simulate_summary,
)
from publication_scout.services.llm import OracleUnavailableError
from publication_scout.utils.cache import JsonCache

QUERY_LLM = "publication_scout.services.ai_summary.query_llm"
CACHE = "publication_scout.services.ai_summary._summary_cache"

ORACLE_SUMMARY = """One-line summary: Spaceflight accelerates bone loss in mice.

Key findings:
- Femur density fell 12% after 30 days
2. Osteoclast activity doubled
* Recovery was incomplete after landing

Relevance to space missions: Informs countermeasures for Mars transit.

Research gap areas:
- Sex differences were not examined
"""

ABSTRACT = "Microgravity exposure caused bone loss; further studies are needed."


def _connection_error() -> anthropic.APIConnectionError:
    return anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )


# ── Parsing ───────────────────────────────────────────────────────────────────


def test_extract_section():
    assert extract_section(ORACLE_SUMMARY, "one-line summary") == (
        "Spaceflight accelerates bone loss in mice."
    )
    assert extract_section(ORACLE_SUMMARY, "not there") is None


def test_extract_list_items_strips_markers():
    assert extract_list_items(ORACLE_SUMMARY, "key findings") == [
        "Femur density fell 12% after 30 days",
        "Osteoclast activity doubled",
        "Recovery was incomplete after landing",
    ]


def test_parse_summary():
    summary = parse_summary(ORACLE_SUMMARY)

    assert summary.one_line_summary == "Spaceflight accelerates bone loss in mice."
    assert len(summary.key_findings) == 3
    assert summary.mission_relevance == "Informs countermeasures for Mars transit."
    assert summary.gap_areas == ["Sex differences were not examined"]


def test_parse_summary_fills_defaults():
    summary = parse_summary("The model rambled without any headings.")

    assert summary.one_line_summary == DEFAULT_ONE_LINE_SUMMARY
    assert summary.key_findings == list(DEFAULT_KEY_FINDINGS)
    assert summary.gap_areas is None


@pytest.mark.parametrize(
    "response, expected",
    [
        ('["P3", "P1"]', ["P3", "P1"]),
        ('Here you go: ["P3", "unknown", "P3"]', ["P3"]),
        ("P2, P1", ["P2", "P1"]),
        ('["P1", ', ["P1"]),
        ("nothing useful", []),
    ],
)
def test_parse_ranked_ids(response, expected):
    assert parse_ranked_ids(response, ["P1", "P2", "P3"]) == expected


def test_parse_gaps_skips_malformed_entries():
    text = """```json
    [
      {"topic": "Plant genetics", "severity": 0.8, "relatedTopics": ["plants"],
       "description": "Few studies"},
      {"topic": "", "severity": 0.5},
      {"topic": "Sleep", "severity": "high", "related_topics": "not a list"},
      {"topic": "Immunity", "severity": 3}
    ]
    ```"""
    gaps = parse_gaps(text)

    assert [(g.topic, g.severity) for g in gaps] == [
        ("Plant genetics", 0.8),
        ("Sleep", 0.0),
        ("Immunity", 1.0),
    ]
    assert gaps[0].related_topics == ["plants"]
    assert gaps[1].related_topics == []


# ── Local heuristics ──────────────────────────────────────────────────────────


def test_extract_keywords_pads_with_long_words():
    keywords = extract_keywords(ABSTRACT)

    assert keywords[:2] == ["microgravity", "bone loss"]
    assert "exposure" in keywords
    assert "studies" in keywords


def test_simulate_summary_is_well_formed():
    summary = simulate_summary(ABSTRACT)

    assert summary.one_line_summary.startswith("Research investigating microgravity")
    assert len(summary.key_findings) == 3
    assert summary.mission_relevance
    assert summary.gap_areas is not None


def test_simulate_summary_without_keywords():
    summary = simulate_summary("")

    assert summary.one_line_summary == (
        "Research investigating space biology in microgravity conditions, "
        "with implications for future space missions."
    )
    assert summary.gap_areas is None


def test_rank_locally(three_publications):
    assert [p.id for p in rank_locally("bone", three_publications)] == ["P1", "P2"]
    assert [p.id for p in rank_locally("hippocampal", three_publications)] == ["P3"]
    assert rank_locally("zzz", three_publications) == []


def test_local_gaps(three_publications):
    gaps = local_gaps(three_publications)

    assert [g.topic for g in gaps] == ["bone loss", "radiation"]
    assert all(g.severity == 0.0 for g in gaps)


# ── generate_summary ──────────────────────────────────────────────────────────


async def test_generate_summary_uses_oracle():
    mock_llm = AsyncMock(return_value=ORACLE_SUMMARY)
    with patch(QUERY_LLM, new=mock_llm):
        summary = await generate_summary("Mice were flown for 30 days.")

    assert summary.one_line_summary == "Spaceflight accelerates bone loss in mice."
    assert "Mice were flown for 30 days." in mock_llm.call_args.args[0]


@pytest.mark.parametrize(
    "failure",
    [
        TimeoutError(),
        OracleUnavailableError("ANTHROPIC_API_KEY is not set"),
        _connection_error(),
    ],
)
async def test_generate_summary_falls_back_on_oracle_failure(failure, caplog):
    with patch(QUERY_LLM, new=AsyncMock(side_effect=failure)):
        summary = await generate_summary(ABSTRACT)

    assert summary.one_line_summary
    assert len(summary.key_findings) >= 1
    assert summary == simulate_summary(ABSTRACT)
    assert "Oracle summary failed" in caplog.text


async def test_generate_summary_caches_oracle_summary(tmp_path):
    cache = JsonCache(directory=tmp_path)
    with patch(CACHE, return_value=cache), patch(
        QUERY_LLM, new=AsyncMock(return_value=ORACLE_SUMMARY)
    ):
        await generate_summary(ABSTRACT)

    cached = cache.get("summary", {"abstract": ABSTRACT})
    assert cached["one_line_summary"] == "Spaceflight accelerates bone loss in mice."


async def test_generate_summary_survives_unwritable_cache(tmp_path, caplog):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    cache = JsonCache(directory=blocker / "cache")
    with patch(CACHE, return_value=cache), patch(
        QUERY_LLM, new=AsyncMock(return_value=ORACLE_SUMMARY)
    ):
        summary = await generate_summary(ABSTRACT)

    assert summary.one_line_summary == "Spaceflight accelerates bone loss in mice."
    assert "Summary cache unwritable" in caplog.text


async def test_generate_summary_does_not_cache_placeholder(tmp_path):
    with patch(CACHE, return_value=JsonCache(directory=tmp_path)), patch(
        QUERY_LLM, new=AsyncMock(return_value="I cannot help with that.")
    ):
        summary = await generate_summary(ABSTRACT)

    assert summary.one_line_summary == DEFAULT_ONE_LINE_SUMMARY
    assert list(tmp_path.iterdir()) == []


async def test_generate_summary_without_credentials_never_raises():
    with patch(
        "publication_scout.services.llm.get_client",
        side_effect=OracleUnavailableError("no key"),
    ):
        summary = await generate_summary(ABSTRACT)

    assert summary.one_line_summary


# ── semantic_search ───────────────────────────────────────────────────────────


async def test_semantic_search_appends_unranked_publications(three_publications):
    with patch(QUERY_LLM, new=AsyncMock(return_value='["P3", "P1"]')):
        ranked = await semantic_search("radiation", three_publications)

    assert [p.id for p in ranked] == ["P3", "P1", "P2"]


async def test_semantic_search_falls_back_when_response_has_no_ids(three_publications):
    with patch(QUERY_LLM, new=AsyncMock(return_value="I cannot rank these.")):
        ranked = await semantic_search("bone", three_publications)

    assert [p.id for p in ranked] == ["P1", "P2"]


async def test_semantic_search_falls_back_on_api_error(three_publications):
    with patch(QUERY_LLM, new=AsyncMock(side_effect=_connection_error())):
        ranked = await semantic_search("hippocampal", three_publications)

    assert [p.id for p in ranked] == ["P3"]


async def test_semantic_search_empty_corpus():
    mock_llm = AsyncMock()
    with patch(QUERY_LLM, new=mock_llm):
        assert await semantic_search("bone", []) == []
    mock_llm.assert_not_called()


# ── identify_gaps ─────────────────────────────────────────────────────────────


async def test_identify_gaps_uses_oracle(three_publications):
    response = '[{"topic": "Sleep", "severity": 0.9, "relatedTopics": [], "description": "d"}]'
    with patch(QUERY_LLM, new=AsyncMock(return_value=response)):
        gaps = await identify_gaps(three_publications)

    assert [g.topic for g in gaps] == ["Sleep"]


async def test_identify_gaps_falls_back_on_unparseable_json(three_publications):
    with patch(QUERY_LLM, new=AsyncMock(return_value='[{"topic": broken}]')):
        gaps = await identify_gaps(three_publications)

    assert [g.topic for g in gaps] == ["bone loss", "radiation"]


async def test_identify_gaps_falls_back_on_empty_list(three_publications):
    with patch(QUERY_LLM, new=AsyncMock(return_value="No gaps found.")):
        gaps = await identify_gaps(three_publications)

    assert gaps == local_gaps(three_publications)


# ── Superseded requests ───────────────────────────────────────────────────────


class TestRequestEpoch:
    def test_tokens_increase(self):
        epoch = RequestEpoch()
        first = epoch.begin()
        second = epoch.begin()

        assert second > first
        assert epoch.is_current(second)
        assert not epoch.is_current(first)

    def test_check_raises_for_stale_token(self):
        epoch = RequestEpoch()
        token = epoch.begin()
        epoch.begin()

        with pytest.raises(StaleResponseError) as exc_info:
            epoch.check(token)
        assert exc_info.value.token == token
        assert exc_info.value.latest == token + 1


async def test_superseded_summary_is_discarded():
    epoch = RequestEpoch()

    async def newer_request_starts_meanwhile(prompt):
        epoch.begin()
        return ORACLE_SUMMARY

    with patch(QUERY_LLM, new=AsyncMock(side_effect=newer_request_starts_meanwhile)):
        with pytest.raises(StaleResponseError):
            await generate_summary(ABSTRACT, epoch=epoch)


async def test_superseded_fallback_is_discarded(three_publications):
    epoch = RequestEpoch()

    async def fail_after_newer_request(prompt):
        epoch.begin()
        raise TimeoutError()

    with patch(QUERY_LLM, new=AsyncMock(side_effect=fail_after_newer_request)):
        with pytest.raises(StaleResponseError):
            await semantic_search("bone", three_publications, epoch=epoch)


async def test_current_request_resolves_with_epoch():
    epoch = RequestEpoch()
    with patch(QUERY_LLM, new=AsyncMock(return_value=ORACLE_SUMMARY)):
        summary = await generate_summary(ABSTRACT, epoch=epoch)

    assert summary.one_line_summary == "Spaceflight accelerates bone loss in mice."

"""Generic LLM call helpers for the generative-language oracle."""

import asyncio
import json
import logging
import re

import anthropic
import httpx
from anthropic import AsyncAnthropic, NOT_GIVEN
from dotenv import load_dotenv

from publication_scout.config import get_settings

load_dotenv()

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """Base exception for oracle failures."""

    pass


class OracleUnavailableError(OracleError):
    """Raised when no credentials are configured."""

    pass


class OracleResponseError(OracleError):
    """Raised when the oracle answers with nothing usable."""

    pass


# Everything an oracle call may raise. Callers catch this tuple and degrade to
# a local heuristic.
ORACLE_FAILURES: tuple[type[BaseException], ...] = (
    OracleError,
    anthropic.APIError,
    httpx.HTTPError,
    TimeoutError,
    ValueError,
    KeyError,
    TypeError,
)

_client: AsyncAnthropic | None = None


def get_client() -> AsyncAnthropic:
    global _client
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise OracleUnavailableError("ANTHROPIC_API_KEY is not set")
    if _client is None:
        _client = AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


def parse_llm_response(response: str) -> list[str]:
    # Try to find a JSON array anywhere in the response
    match = re.search(r"\[.*?\]", response, re.DOTALL)
    if match:
        return json.loads(match.group())
    # Fallback: return the raw response as a single-item list
    return [response.strip()]


def extract_json_objects(response: str) -> list[dict]:
    """Return the outermost JSON array of objects found in the response.

    Raises:
        OracleResponseError: if no array of objects is present.
        json.JSONDecodeError: if the array is not valid JSON.
    """
    match = re.search(r"\[\s*\{.*\}\s*\]", response, re.DOTALL)
    if not match:
        raise OracleResponseError("Could not find a JSON array in the response")
    data = json.loads(match.group())
    return [item for item in data if isinstance(item, dict)]


async def query_llm(
    prompt: str,
    system: str = "",
    model: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> str:
    """Send one prompt and return the response text.

    The call is bounded by Settings.llm_timeout_seconds; a timeout raises
    TimeoutError like any other failure.
    """
    settings = get_settings()
    client = get_client()
    response = await asyncio.wait_for(
        client.messages.create(
            model=model or settings.llm_model,
            max_tokens=max_tokens or settings.llm_max_tokens,
            temperature=settings.llm_temperature if temperature is None else temperature,
            system=system or NOT_GIVEN,
            messages=[{"role": "user", "content": prompt}],
        ),
        timeout=settings.llm_timeout_seconds,
    )
    text = "".join(
        block.text for block in response.content if getattr(block, "type", "") == "text"
    )
    if not text.strip():
        raise OracleResponseError("No text generated by the model")
    return text


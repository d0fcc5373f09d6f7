"""
Base classes for raw record sources.

A record source yields flat, string-keyed rows; the normalizer turns them into
Publications. HTTP sources share one lazily opened aiohttp session with a
total timeout, and retry transient failures with exponential backoff. A load
that cannot complete raises LoadError. There is no partial-result fallback.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

from publication_scout.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger("publication_scout.data_sources")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class DataSourceError(Exception):
    """Base exception for record source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class LoadError(DataSourceError):
    """Raised when the corpus cannot be loaded."""

    pass


class RetryConfig(BaseModel):
    """Backoff schedule: base_delay * backoff_factor**attempt, capped."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * self.backoff_factor**attempt, self.max_delay)


class ClientConfig(BaseModel):
    retry: RetryConfig = RetryConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


class RecordSource(ABC):
    """Anything that can produce the raw rows of a corpus."""

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier used in errors and logs, e.g. 'spreadsheet'."""
        ...

    @abstractmethod
    async def fetch_rows(self) -> list[dict[str, Any]]:
        """Return every raw row, or raise LoadError."""
        ...

    async def close(self) -> None:
        """Release held resources. No-op for local sources."""
        return None


class BaseClient(RecordSource):
    """Record source reached over HTTP."""

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def _error(self, message: str, status_code: int | None = None) -> LoadError:
        return LoadError(self._source_name, message, status_code=status_code)

    async def _attempt_get(self, url: str, params: dict[str, Any] | None) -> Any:
        """One GET. Raises LoadError; the status code marks it retryable or not."""
        session = await self._get_session()
        resp = await session.get(url, params=params)
        if resp.status >= 400:
            body = (await resp.text())[:300]
            raise self._error(f"HTTP {resp.status}: {body}", status_code=resp.status)
        try:
            return await resp.json(content_type=None)
        except ValueError as e:
            raise self._error(f"Invalid JSON: {e}") from e

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document, retrying timeouts, connection errors and 429/5xx.

        Raises:
            LoadError: on any other HTTP error or an undecodable body, and
                with the last failure once retries are exhausted.
        """
        retry = self.config.retry
        started = time.monotonic()
        failure: LoadError = self._error("Request failed")

        for attempt in range(retry.max_retries + 1):
            logger.info("GET [%s] attempt=%d %s", self._source_name, attempt + 1, url)
            try:
                data = await self._attempt_get(url, params)
            except LoadError as e:
                if e.status_code not in RETRYABLE_STATUS_CODES:
                    raise
                failure = e
            except asyncio.TimeoutError:
                failure = self._error(f"Timeout after {time.monotonic() - started:.1f}s")
            except aiohttp.ClientError as e:
                failure = self._error(f"Connection error: {e}")
            else:
                logger.info(
                    "GET [%s] ok in %.2fs", self._source_name, time.monotonic() - started
                )
                return data

            logger.warning(
                "GET [%s] attempt=%d failed: %s", self._source_name, attempt + 1, failure
            )
            if attempt < retry.max_retries:
                await asyncio.sleep(retry.delay(attempt))

        logger.error("GET [%s] gave up after %d attempts", self._source_name, attempt + 1)
        raise failure

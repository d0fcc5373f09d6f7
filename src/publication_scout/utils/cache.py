"""
File-based JSON cache for oracle responses.

Entries are JSON files named by a SHA-256 hash of (namespace, params), each
holding {"data": ..., "cached_at": ..., "ttl": ...}. Expired or corrupt
entries are deleted on read and reported as misses.
"""

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from publication_scout.constants import CACHE_TTL, DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)


def cache_key(namespace: str, params: dict[str, Any]) -> str:
    """Return a deterministic hex digest for the given namespace and params."""
    raw = json.dumps({"ns": namespace, **params}, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()


class JsonCache:
    """Namespaced TTL cache stored as one JSON file per entry."""

    def __init__(
        self,
        directory: Path = DEFAULT_CACHE_DIR,
        ttl: int = CACHE_TTL,
        enabled: bool = True,
    ):
        self.directory = directory
        self.ttl = ttl
        self.enabled = enabled

    def _path(self, namespace: str, params: dict[str, Any]) -> Path:
        return self.directory / f"{cache_key(namespace, params)}.json"

    def get(self, namespace: str, params: dict[str, Any]) -> Any | None:
        if not self.enabled:
            return None
        path = self._path(namespace, params)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text())
            age = (datetime.now() - datetime.fromisoformat(entry["cached_at"])).total_seconds()
            if age > entry.get("ttl", self.ttl):
                logger.debug("Cache expired for %s (age=%.0fs)", namespace, age)
                path.unlink(missing_ok=True)
                return None
            logger.debug("Cache hit for %s", namespace)
            return entry["data"]
        except (json.JSONDecodeError, KeyError, ValueError):
            path.unlink(missing_ok=True)
            return None

    def set(
        self,
        namespace: str,
        params: dict[str, Any],
        data: Any,
        ttl: int | None = None,
    ) -> None:
        if not self.enabled:
            return
        self.directory.mkdir(parents=True, exist_ok=True)
        entry = {
            "data": data,
            "cached_at": datetime.now().isoformat(),
            "ttl": ttl if ttl is not None else self.ttl,
        }
        self._path(namespace, params).write_text(json.dumps(entry, default=str))

    def invalidate(self, namespace: str, params: dict[str, Any]) -> None:
        self._path(namespace, params).unlink(missing_ok=True)

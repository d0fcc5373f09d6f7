"""Remote record source: an HTTP endpoint returning {"publications": [...]}."""

from typing import Any

from publication_scout.data_sources.base_client import BaseClient, ClientConfig, LoadError


class PublicationsApiClient(BaseClient):
    """Client for a publications JSON endpoint."""

    def __init__(self, url: str, config: ClientConfig | None = None) -> None:
        super().__init__(config)
        self.url = url

    @property
    def _source_name(self) -> str:
        return "publications_api"

    async def fetch_rows(self) -> list[dict[str, Any]]:
        data = await self._get_json(self.url)
        if not isinstance(data, dict):
            raise LoadError(self._source_name, "Response is not a JSON object")
        if "error" in data and "publications" not in data:
            raise LoadError(self._source_name, f"Server reported: {data['error']}")

        rows = data.get("publications")
        if not isinstance(rows, list):
            raise LoadError(self._source_name, "Response has no 'publications' list")
        return [row for row in rows if isinstance(row, dict)]

"""Raw record sources for PublicationScout."""

from publication_scout.data_sources.base_client import (
    DataSourceError,
    LoadError,
    RecordSource,
)
from publication_scout.data_sources.publications_api import PublicationsApiClient
from publication_scout.data_sources.spreadsheet import SpreadsheetSource

__all__ = [
    "DataSourceError",
    "LoadError",
    "PublicationsApiClient",
    "RecordSource",
    "SpreadsheetSource",
]

"""Abstract base classes for data providers."""

from abc import ABC, abstractmethod
from typing import List

from coinhist.models.datatypes import CatalogEntry, RawRecord


class CatalogProvider(ABC):
    """Abstract interface for listing every tracked coin."""

    @abstractmethod
    def list_coins(self, start_date: str, end_date: str) -> List[CatalogEntry]:
        """
        Fetch the full coin listing.

        Args:
            start_date (str): First day of history, ``yyyymmdd``.
            end_date (str): Last day of history, ``yyyymmdd``.

        Returns:
            List[CatalogEntry]: Every listed coin, with a ``source_location``
            covering the requested date range. Order is not significant.
        """
        pass


class HistoryProvider(ABC):
    """Abstract interface for fetching and scraping one coin's daily history."""

    @abstractmethod
    def fetch_and_parse(self, source_location: str, slug: str) -> List[RawRecord]:
        """
        Retrieve the history table at ``source_location``.

        Args:
            source_location (str): Where the history lives (a URL for CoinMarketCap).
            slug (str): Identity key stamped on every returned record.

        Returns:
            List[RawRecord]: One record per table row, fields left as text.

        Raises:
            Exception: Any failure. Callers treat all failures alike.
        """
        pass

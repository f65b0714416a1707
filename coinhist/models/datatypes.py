"""Data structures for the coin history pipeline."""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

# Column order of the final table.
OUTPUT_COLUMNS = [
    "slug", "symbol", "name", "date", "rank",
    "open", "high", "low", "close", "volume", "market",
    "close_ratio", "spread",
]


@dataclass(frozen=True)
class CatalogEntry:
    """
    One coin of the catalog, with the location its history is fetched from.
    """
    symbol: str
    name: str
    rank: int
    slug: str
    source_location: str


@dataclass
class RawRecord:
    """
    One scraped row of daily history, every field still in its textual form.
    """
    slug: str
    date_text: Optional[str]
    open_text: Optional[str]
    high_text: Optional[str]
    low_text: Optional[str]
    close_text: Optional[str]
    volume_text: Optional[str]
    market_text: Optional[str]


@dataclass
class FetchOutcome:
    """
    Result of one fetch task. ``records`` is None when the task failed.
    """
    entry: CatalogEntry
    records: Optional[List[RawRecord]] = None

    @property
    def ok(self) -> bool:
        return self.records is not None


@dataclass
class MergedRecord:
    """
    A RawRecord joined with the symbol, name and rank of its catalog entry.
    """
    slug: str
    symbol: str
    name: str
    rank: int
    date_text: Optional[str]
    open_text: Optional[str]
    high_text: Optional[str]
    low_text: Optional[str]
    close_text: Optional[str]
    volume_text: Optional[str]
    market_text: Optional[str]


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Represents a single typed row of the final table.
    """
    slug: str
    symbol: str
    name: str
    date: date
    rank: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    market: float
    close_ratio: float
    spread: float

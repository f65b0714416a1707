"""Shared fixtures: in-memory catalog and history providers (no network)."""

from typing import Dict, List, Union

import pytest

from coinhist.models.datatypes import CatalogEntry, RawRecord
from coinhist.providers.base import CatalogProvider, HistoryProvider


def raw(slug, date_text="Jan 02, 2018", open_="1", high="2", low="1", close="1.5",
        volume="1,000", market="10,000") -> RawRecord:
    return RawRecord(
        slug=slug,
        date_text=date_text,
        open_text=open_,
        high_text=high,
        low_text=low,
        close_text=close,
        volume_text=volume,
        market_text=market,
    )


class FakeCatalog(CatalogProvider):
    def __init__(self, coins: List[Dict]) -> None:
        self.coins = coins
        self.calls = []

    def list_coins(self, start_date: str, end_date: str) -> List[CatalogEntry]:
        self.calls.append((start_date, end_date))
        return [
            CatalogEntry(
                symbol=c["symbol"],
                name=c["name"],
                rank=c["rank"],
                slug=c["slug"],
                source_location=f"mem://{c['slug']}?start={start_date}&end={end_date}",
            )
            for c in self.coins
        ]


class FakeHistory(HistoryProvider):
    """Returns canned rows per slug; an Exception value is raised instead."""

    def __init__(self, results: Dict[str, Union[List[RawRecord], Exception]]) -> None:
        self.results = results

    def fetch_and_parse(self, source_location: str, slug: str) -> List[RawRecord]:
        result = self.results.get(slug, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def coins() -> List[Dict]:
    return [
        {"symbol": "ETH", "name": "Ethereum", "rank": 2, "slug": "ethereum"},
        {"symbol": "BTC", "name": "Bitcoin", "rank": 1, "slug": "bitcoin"},
        {"symbol": "XRP", "name": "XRP", "rank": 3, "slug": "ripple"},
        {"symbol": "KIN", "name": "Kin", "rank": 250, "slug": "kin"},
    ]


@pytest.fixture
def catalog_provider(coins) -> FakeCatalog:
    return FakeCatalog(coins)


@pytest.fixture
def history_rows() -> Dict[str, List[RawRecord]]:
    return {
        "bitcoin": [
            raw("bitcoin", "Jan 03, 2018", "95", "100", "90", "95", "1,200", "1,600,000"),
            raw("bitcoin", "Jan 02, 2018", "90", "96", "88", "92", "1,100", "1,500,000"),
        ],
        "ethereum": [
            raw("ethereum", "Jan 02, 2018", "800", "900", "780", "880", "5,000", "80,000"),
        ],
        "ripple": [
            raw("ripple", "Jan 02, 2018", "2", "2.5", "1.9", "2.3", "-", "-"),
        ],
        "kin": [
            raw("kin", "Jan 02, 2018", "0.0001", "0.0002", "0.0001", "0.00015", "10", "100"),
        ],
    }

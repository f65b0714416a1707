"""CoinMarketCap catalog and historical-data providers.

The catalog comes from the quick-search JSON listing; each coin's daily
history is scraped from the first HTML table of its historical-data page.
"""

import io
import re
from typing import Dict, List, Optional

import pandas as pd
import requests

from coinhist.core.exceptions import FetchError
from coinhist.core.logger import logger
from coinhist.core.retry import with_retries
from coinhist.models.datatypes import CatalogEntry, RawRecord
from coinhist.providers.base import CatalogProvider, HistoryProvider

_LISTING_URL = "https://s2.coinmarketcap.com/generated/search/quick_search.json"
_HISTORY_URL = "https://coinmarketcap.com/currencies/{slug}/historical-data/?start={start}&end={end}"

# Header text (letters only, lower-cased) → RawRecord field.
_COLUMN_MAP = {
    "date": "date_text",
    "open": "open_text",
    "high": "high_text",
    "low": "low_text",
    "close": "close_text",
    "volume": "volume_text",
    "marketcap": "market_text",
}


@with_retries(max_retries=2, initial_delay=1, exceptions=(requests.ConnectionError, requests.Timeout))
def _http_get(url: str, timeout: int, user_agent: str) -> requests.Response:
    """GET ``url``, retrying on connection errors and timeouts only."""
    return requests.get(url, headers={"User-Agent": user_agent}, timeout=timeout)


def history_url(slug: str, start_date: str, end_date: str) -> str:
    """Return the historical-data page URL for ``slug`` over the date range."""
    return _HISTORY_URL.format(slug=slug, start=start_date, end=end_date)


class CoinMarketCapCatalog(CatalogProvider):
    """Quick-search listing of every coin tracked by CoinMarketCap."""

    def __init__(self, timeout: int = 30, user_agent: str = "coinhist/0.1") -> None:
        """Args:
            timeout: Per-request timeout in seconds.
            user_agent: ``User-Agent`` header sent with the request.
        """
        self.timeout = timeout
        self.user_agent = user_agent

    def list_coins(self, start_date: str, end_date: str) -> List[CatalogEntry]:
        logger.info(f"CoinMarketCapCatalog: fetching listing from {_LISTING_URL}")
        try:
            resp = _http_get(_LISTING_URL, self.timeout, self.user_agent)
        except requests.RequestException as exc:
            raise FetchError(f"coin listing request failed: {exc}") from exc

        if resp.status_code != 200:
            raise FetchError(f"coin listing returned HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise FetchError(f"coin listing is not valid JSON: {exc}") from exc

        return self.parse_listing(payload, start_date, end_date)

    @staticmethod
    def parse_listing(payload: List[Dict], start_date: str, end_date: str) -> List[CatalogEntry]:
        """Turn the quick-search JSON payload into catalog entries.

        Items without a slug or a usable rank are skipped.
        """
        entries: List[CatalogEntry] = []
        skipped = 0
        for item in payload:
            slug = (item.get("slug") or "").strip()
            rank = item.get("rank")
            if not slug or rank is None:
                skipped += 1
                continue
            try:
                rank = int(rank)
            except (TypeError, ValueError):
                skipped += 1
                continue
            entries.append(CatalogEntry(
                symbol=str(item.get("symbol") or ""),
                name=str(item.get("name") or ""),
                rank=rank,
                slug=slug,
                source_location=history_url(slug, start_date, end_date),
            ))
        if skipped:
            logger.debug(f"CoinMarketCapCatalog: skipped {skipped} unranked listing items")
        logger.info(f"CoinMarketCapCatalog: {len(entries)} coins listed")
        return entries


class CoinMarketCapHistory(HistoryProvider):
    """Scrapes the daily history table of one coin's historical-data page."""

    def __init__(self, timeout: int = 30, user_agent: str = "coinhist/0.1") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_and_parse(self, source_location: str, slug: str) -> List[RawRecord]:
        logger.debug(f"CoinMarketCapHistory: fetching {slug} from {source_location}")
        try:
            resp = _http_get(source_location, self.timeout, self.user_agent)
        except requests.RequestException as exc:
            raise FetchError(f"history request for {slug} failed: {exc}") from exc

        if resp.status_code != 200:
            raise FetchError(f"history for {slug} returned HTTP {resp.status_code}")

        return parse_history_table(resp.text, slug)


def _field_for(header) -> Optional[str]:
    # read_html gives tuples for multi-row headers; the last level is the label
    if isinstance(header, tuple):
        header = header[-1]
    key = re.sub(r"[^a-z]", "", str(header).lower())
    return _COLUMN_MAP.get(key)


def _cell_text(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return str(value)


def parse_history_table(html: str, slug: str) -> List[RawRecord]:
    """Extract the first table of ``html`` into RawRecords.

    Columns are matched by header name, so the trailing ``*`` markers on
    ``Open*`` and ``Close**`` are ignored.

    Raises:
        FetchError: If the page has no table or lacks a date column.
    """
    try:
        tables = pd.read_html(io.StringIO(html), flavor="lxml", thousands=None)
    except ValueError as exc:
        raise FetchError(f"no history table found for {slug}") from exc

    table = tables[0]
    columns = {}
    for header in table.columns:
        field = _field_for(header)
        if field and field not in columns.values():
            columns[header] = field

    if "date_text" not in columns.values():
        raise FetchError(f"history table for {slug} has no Date column")

    records: List[RawRecord] = []
    for _, row in table.iterrows():
        fields = {field: None for field in _COLUMN_MAP.values()}
        for header, field in columns.items():
            fields[field] = _cell_text(row[header])
        records.append(RawRecord(slug=slug, **fields))

    logger.debug(f"CoinMarketCapHistory: {len(records)} rows scraped for {slug}")
    return records

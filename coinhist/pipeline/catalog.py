"""Task source: selects, orders and truncates the coins to fetch.

A filter term matches a coin when it equals the coin's name (any case),
its symbol (upper-cased) or its slug (lower-cased).
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

from coinhist.core.config import DEFAULT_START_DATE, parse_yyyymmdd, positive_int
from coinhist.core.exceptions import ConfigError
from coinhist.core.logger import logger
from coinhist.models.datatypes import CatalogEntry
from coinhist.providers.base import CatalogProvider

EntityFilter = Union[None, str, Sequence[str]]


def _filter_terms(entity_filter: EntityFilter) -> Optional[List[str]]:
    """Return the filter terms, or None when every coin is selected."""
    if entity_filter is None:
        return None
    if isinstance(entity_filter, str):
        if entity_filter.strip().lower() in ("", "all"):
            return None
        return [entity_filter.strip()]
    if isinstance(entity_filter, (list, tuple, set, frozenset)):
        return [str(term).strip() for term in entity_filter]
    raise ConfigError(f"unsupported entity filter: {entity_filter!r}")


def _matches(entry: CatalogEntry, terms: Iterable[str]) -> bool:
    for term in terms:
        if entry.name.upper() == term.upper():
            return True
        if entry.symbol == term.upper():
            return True
        if entry.slug == term.lower():
            return True
    return False


def select_entries(
    entries: Iterable[CatalogEntry],
    entity_filter: EntityFilter = None,
    limit: Optional[int] = None,
) -> List[CatalogEntry]:
    """Filter, de-duplicate by slug, sort by rank and truncate ``entries``."""
    terms = _filter_terms(entity_filter)
    limit = positive_int(limit, "limit")

    seen = set()
    selected: List[CatalogEntry] = []
    for entry in entries:
        if entry.slug in seen:
            continue
        if terms is not None and not _matches(entry, terms):
            continue
        seen.add(entry.slug)
        selected.append(entry)

    selected.sort(key=lambda e: e.rank)
    if limit is not None:
        selected = selected[:limit]
    return selected


def load_catalog(
    provider: CatalogProvider,
    entity_filter: EntityFilter = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[CatalogEntry]:
    """Load the coins to process, in catalog rank order.

    Args:
        provider: Source of the full coin listing.
        entity_filter: ``None``/``"all"`` for every coin, one name, or a list of names.
        start_date: First day of history (``yyyymmdd``); defaults to the start of records.
        end_date: Last day of history (``yyyymmdd``); defaults to today.
        limit: Keep only the first N coins after ordering.

    Returns:
        List[CatalogEntry]: Possibly empty when nothing matches the filter.

    Raises:
        ConfigError: On malformed dates or limit.
    """
    start = parse_yyyymmdd(start_date or DEFAULT_START_DATE, "start_date")
    end = parse_yyyymmdd(end_date or date.today().strftime("%Y%m%d"), "end_date")

    listing = provider.list_coins(start, end)
    entries = select_entries(listing, entity_filter, limit)

    if not entries:
        logger.warning(f"Catalog: no coins match filter {entity_filter!r}")
    else:
        logger.info(f"Catalog: {len(entries)} of {len(listing)} coins selected ({start} → {end})")
    return entries


def build_index(entries: Iterable[CatalogEntry]) -> Dict[str, CatalogEntry]:
    """Map slug → entry for constant-time joins. The first entry wins on duplicates."""
    index: Dict[str, CatalogEntry] = {}
    for entry in entries:
        index.setdefault(entry.slug, entry)
    return index

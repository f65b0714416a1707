"""Result merger — joins scraped rows back to their catalog entries."""

from typing import Iterable, List, Mapping, Sequence, Union

from coinhist.core.exceptions import NoDataError
from coinhist.core.logger import logger
from coinhist.models.datatypes import CatalogEntry, FetchOutcome, MergedRecord
from coinhist.pipeline.catalog import build_index

NO_DATA_MESSAGE = "No data currently exists for this cryptocurrency that can be scraped."


def merge(
    outcomes: Iterable[FetchOutcome],
    catalog: Union[Sequence[CatalogEntry], Mapping[str, CatalogEntry]],
) -> List[MergedRecord]:
    """Flatten successful outcomes and inner-join them to ``catalog`` on slug.

    Args:
        outcomes: Dispatcher results; failed outcomes contribute nothing.
        catalog: Catalog entries, or an already built slug → entry mapping.

    Returns:
        List[MergedRecord]: Rows whose slug is in the catalog, in input order.

    Raises:
        NoDataError: If no outcome produced a single raw record.
    """
    index = catalog if isinstance(catalog, Mapping) else build_index(catalog)

    raw = [record for outcome in outcomes if outcome.ok for record in outcome.records]
    if not raw:
        raise NoDataError(NO_DATA_MESSAGE)

    merged: List[MergedRecord] = []
    unmatched = 0
    for record in raw:
        entry = index.get(record.slug)
        if entry is None:
            unmatched += 1
            continue
        merged.append(MergedRecord(
            slug=record.slug,
            symbol=entry.symbol,
            name=entry.name,
            rank=entry.rank,
            date_text=record.date_text,
            open_text=record.open_text,
            high_text=record.high_text,
            low_text=record.low_text,
            close_text=record.close_text,
            volume_text=record.volume_text,
            market_text=record.market_text,
        ))

    if unmatched:
        logger.debug(f"Merger: dropped {unmatched} rows with slugs missing from the catalog")
    logger.info(f"Merger: {len(merged)} rows joined from {len(raw)} scraped")
    return merged

"""Pipeline engine — orchestrates catalog → fetch → merge → normalize → sort.

Flow:
  1. Catalog    — load_catalog selects and orders the coins to fetch
  2. Dispatcher — run_batch fetches every coin's history, dropping failures
  3. Merger     — merge joins scraped rows to catalog symbol/name/rank
  4. Normalizer — normalize types the fields and derives close_ratio/spread
  5. Finalizer  — finalize sorts by (rank, date); to_frame builds the table

A failure on a single coin is logged and skipped; only a run that ends with
no usable rows at all raises :class:`NoDataError`.
"""

import time
from typing import Any, Dict, Optional

import pandas as pd

from coinhist.core.config import resolve_options
from coinhist.core.exceptions import NoDataError
from coinhist.core.logger import logger, set_level
from coinhist.pipeline.catalog import build_index, load_catalog
from coinhist.pipeline.dispatcher import ProgressCallback, log_progress, run_batch
from coinhist.pipeline.finalizer import finalize, to_frame
from coinhist.pipeline.merger import NO_DATA_MESSAGE, merge
from coinhist.pipeline.normalizer import normalize
from coinhist.providers.base import CatalogProvider, HistoryProvider
from coinhist.providers.coinmarketcap import CoinMarketCapCatalog, CoinMarketCapHistory


class PipelineEngine:
    """Orchestrates the full coin history pipeline.

    Args:
        config: Parsed config dict (passed in; not re-loaded internally).
        catalog_provider: Source of the coin listing. Defaults to CoinMarketCap.
        history_provider: Per-coin fetch-and-parse routine. Defaults to CoinMarketCap.
        progress: Progress callback; defaults to logging ``completed/total``.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        catalog_provider: Optional[CatalogProvider] = None,
        history_provider: Optional[HistoryProvider] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.options = resolve_options(config)
        set_level(self.options["log_level"])

        timeout = self.options["request_timeout"]
        user_agent = self.options["user_agent"]
        self.catalog_provider = catalog_provider or CoinMarketCapCatalog(timeout, user_agent)
        self.history_provider = history_provider or CoinMarketCapHistory(timeout, user_agent)
        self.progress = progress

    # ── public ────────────────────────────────────────────────────────────────

    def run(self) -> pd.DataFrame:
        """Run the pipeline for every selected coin.

        Returns:
            pd.DataFrame: The normalized table, sorted by rank then date.

        Raises:
            NoDataError: If nothing usable was fetched.
        """
        opts = self.options
        started = time.perf_counter()

        entries = load_catalog(
            self.catalog_provider,
            entity_filter=opts["entity_filter"],
            start_date=opts["start_date"],
            end_date=opts["end_date"],
            limit=opts["limit"],
        )
        if not entries:
            raise NoDataError(NO_DATA_MESSAGE)

        progress = self.progress or log_progress(len(entries), every=max(len(entries) // 20, 1))
        outcomes = run_batch(
            entries,
            self.history_provider.fetch_and_parse,
            concurrency=opts["concurrency"],
            progress=progress,
        )

        merged = merge(outcomes, build_index(entries))
        records = finalize(normalize(merged, locale=opts["locale"]))
        if not records:
            raise NoDataError(NO_DATA_MESSAGE)

        table = to_frame(records)
        logger.info(
            f"PipelineEngine: {len(table)} rows for {table['slug'].nunique()} coins "
            f"in {time.perf_counter() - started:.2f}s"
        )
        return table


def get_coins(
    coin=None,
    limit: Optional[int] = None,
    concurrency: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """Fetch the normalized daily history of one coin, several, or all of them.

    Args:
        coin: Name, symbol or slug; a list of them; or ``None`` for every coin.
        limit: Only the top N coins by rank.
        concurrency: Parallel fetches; ``1`` for sequential, ``None`` for the CPU count.
        start_date: ``yyyymmdd``; defaults to 20130428.
        end_date: ``yyyymmdd``; defaults to today.
        **kwargs: Further engine arguments (``catalog_provider``,
            ``history_provider``, ``progress``) or config keys.

    Returns:
        pd.DataFrame: The final table.
    """
    engine_args = {
        key: kwargs.pop(key)
        for key in ("catalog_provider", "history_provider", "progress")
        if key in kwargs
    }
    config = dict(kwargs)
    config.update(
        entity_filter=coin,
        limit=limit,
        concurrency=concurrency,
        start_date=start_date,
        end_date=end_date,
    )
    return PipelineEngine(config, **engine_args).run()


crypto_history = get_coins

"""Dispatcher — runs one fetch-and-parse task per catalog entry.

Tasks run on a thread pool of ``concurrency`` workers, or in a plain loop
when ``concurrency == 1``. A failing task is removed from the batch: it
yields ``FetchOutcome(entry, None)`` and its siblings carry on. The progress
callback is only ever invoked from the calling thread, once per finished task.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from coinhist.core.config import positive_int
from coinhist.core.logger import logger
from coinhist.models.datatypes import CatalogEntry, FetchOutcome, RawRecord

FetchAndParse = Callable[[str, str], List[RawRecord]]
ProgressCallback = Callable[[int], None]


def default_concurrency() -> int:
    """Number of workers used when none is configured: the host CPU count."""
    return os.cpu_count() or 1


def log_progress(total: int, every: int = 1) -> ProgressCallback:
    """Return a progress callback that logs ``completed/total``.

    Args:
        total: Number of tasks in the batch.
        every: Only log every Nth completion (the last one is always logged).
    """
    def _report(completed: int) -> None:
        if completed == total or completed % max(every, 1) == 0:
            pct = completed / total * 100 if total else 100.0
            logger.info(f"Dispatcher: {completed}/{total} coins fetched ({pct:.0f}%)")
    return _report


def _run_task(entry: CatalogEntry, fetch_and_parse: FetchAndParse) -> FetchOutcome:
    """Run one task, turning any exception into a failed outcome."""
    try:
        records = fetch_and_parse(entry.source_location, entry.slug)
    except Exception as exc:
        logger.warning(f"Dispatcher: dropping {entry.slug}: {exc}")
        return FetchOutcome(entry=entry, records=None)
    return FetchOutcome(entry=entry, records=list(records or []))


def run_batch(
    entries: Sequence[CatalogEntry],
    fetch_and_parse: FetchAndParse,
    concurrency: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> List[FetchOutcome]:
    """Fetch every entry, tolerating individual failures.

    Args:
        entries: Coins to fetch.
        fetch_and_parse: ``(source_location, slug) -> records``; may raise.
        concurrency: Maximum tasks in flight. ``None`` means the host CPU
            count; ``1`` runs sequentially without a pool.
        progress: Called with the number of completed tasks after each one.

    Returns:
        List[FetchOutcome]: One outcome per entry, in completion order.

    Raises:
        ConfigError: If ``concurrency`` is not a positive integer.
    """
    workers = positive_int(concurrency, "concurrency") or default_concurrency()
    total = len(entries)
    outcomes: List[FetchOutcome] = []
    completed = 0

    started = time.perf_counter()
    if workers == 1 or total <= 1:
        if total > 1:
            logger.info(f"Dispatcher: fetching {total} coins sequentially, this will take a while")
        for entry in entries:
            outcomes.append(_run_task(entry, fetch_and_parse))
            completed += 1
            if progress:
                progress(completed)
    else:
        pool_size = min(workers, total)
        logger.info(f"Dispatcher: fetching {total} coins with {pool_size} workers")
        with ThreadPoolExecutor(max_workers=pool_size) as executor:
            future_to_entry = {
                executor.submit(_run_task, entry, fetch_and_parse): entry
                for entry in entries
            }
            for future in as_completed(future_to_entry):
                outcomes.append(future.result())
                completed += 1
                if progress:
                    progress(completed)

    elapsed = time.perf_counter() - started
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info(
        f"Dispatcher: batch finished in {elapsed:.2f}s — "
        f"{total - failed} succeeded, {failed} failed"
    )
    return outcomes

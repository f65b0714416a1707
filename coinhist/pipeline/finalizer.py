"""Sorter/finalizer — orders normalized rows and builds the output table."""

from typing import Iterable, List

import pandas as pd

from coinhist.models.datatypes import OUTPUT_COLUMNS, NormalizedRecord


def finalize(records: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
    """Sort by ``(rank, date)`` ascending; equal keys keep their input order."""
    return sorted(records, key=lambda r: (r.rank, r.date))


def to_frame(records: Iterable[NormalizedRecord]) -> pd.DataFrame:
    """Build the final table with exactly :data:`OUTPUT_COLUMNS`."""
    rows = [{col: getattr(record, col) for col in OUTPUT_COLUMNS} for record in records]
    df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS)
    if not df.empty:
        df["rank"] = df["rank"].astype(int)
    return df.reset_index(drop=True)

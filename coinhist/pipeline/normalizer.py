"""Normalizer — turns merged text rows into typed records with derived metrics.

Steps, applied column-wise with pandas:
  1. Parse the month/day/year date with an explicit locale month table.
  2. Strip ``,`` thousands separators from every numeric field.
  3. Replace placeholder markers (``-``) with ``0`` in volume and market.
  4. Coerce volume and market, treating empty or missing as ``0``.
  5. Coerce open/high/low/close/rank; a failure drops the row.
  6. Derive ``close_ratio`` and ``spread``.
  7. Drop any row still holding a missing value.

Bad field content never raises; the affected row is dropped instead.
"""

import re
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from coinhist.core.logger import logger
from coinhist.models.datatypes import MergedRecord, NormalizedRecord

# Month tables per locale. Keys are lower-cased and stripped of dots.
MONTH_NAMES: Dict[str, Dict[str, int]] = {
    "en": {
        "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
        "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6,
        "jul": 7, "july": 7, "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9,
        "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
    },
}

_TEXT_DATE = re.compile(r"^([^\W\d_][^\s\d,]*)\.?\s+(\d{1,2}),?\s+(\d{4})$")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_PLACEHOLDER = re.compile(r"^[-–—]+$")

_NUMERIC_FIELDS = ["rank", "open", "high", "low", "close", "volume", "market"]
_REQUIRED_FIELDS = ["open", "high", "low", "close", "rank"]
_FILLED_FIELDS = ["volume", "market"]


def parse_date(text: Optional[str], locale: str = "en") -> Optional[date]:
    """Parse a month/day/year date such as ``"Jan 05, 2018"`` or ``"01/05/2018"``.

    Month names are looked up in :data:`MONTH_NAMES` for ``locale`` instead of
    relying on the process locale.

    Returns:
        Optional[date]: ``None`` for missing, malformed or impossible dates,
        and for unknown locales.
    """
    if text is None:
        return None
    text = str(text).strip()
    if not text:
        return None

    match = _NUMERIC_DATE.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
    else:
        match = _TEXT_DATE.match(text)
        months = MONTH_NAMES.get(locale.lower())
        if not match or months is None:
            return None
        month = months.get(match.group(1).lower().rstrip("."))
        if month is None:
            return None
        day, year = int(match.group(2)), int(match.group(3))

    try:
        return date(year, month, day)
    except ValueError:
        return None


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and np.isnan(value))


def _strip_thousands(series: pd.Series) -> pd.Series:
    return series.map(lambda v: None if _missing(v) else str(v).replace(",", "").strip())


def _replace_placeholder(series: pd.Series) -> pd.Series:
    return series.map(lambda v: "0" if not _missing(v) and _PLACEHOLDER.match(v) else v)


def _to_frame(records: Sequence[MergedRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "slug": [r.slug for r in records],
            "symbol": [r.symbol for r in records],
            "name": [r.name for r in records],
            "date": [r.date_text for r in records],
            "rank": [None if r.rank is None else str(r.rank) for r in records],
            "open": [r.open_text for r in records],
            "high": [r.high_text for r in records],
            "low": [r.low_text for r in records],
            "close": [r.close_text for r in records],
            "volume": [r.volume_text for r in records],
            "market": [r.market_text for r in records],
        },
        dtype=object,
    )


def normalize(merged_records: Sequence[MergedRecord], locale: str = "en") -> List[NormalizedRecord]:
    """Clean, type and enrich merged rows.

    Args:
        merged_records: Output of the merger.
        locale: Month-name table used for dates.

    Returns:
        List[NormalizedRecord]: Complete rows only, in input order.
    """
    if not merged_records:
        return []

    df = _to_frame(merged_records)
    total = len(df)

    df["date"] = df["date"].map(lambda v: parse_date(v, locale))

    for col in _NUMERIC_FIELDS:
        df[col] = _strip_thousands(df[col])

    for col in _FILLED_FIELDS:
        df[col] = _replace_placeholder(df[col])
        df[col] = df[col].map(lambda v: "0" if _missing(v) or v == "" else v)
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

    for col in _REQUIRED_FIELDS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

    df = df.dropna(subset=_REQUIRED_FIELDS)
    # fractional ranks cannot be an integer rank
    df = df[df["rank"] == np.floor(df["rank"])].copy()

    span = df["high"] - df["low"]
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = (df["close"] - df["low"]) / span
    # builtin round, not Series.round: numpy rint rounds half-steps differently
    df["close_ratio"] = ratio.where(span != 0, 0.0).map(lambda v: round(v, 4))
    df["spread"] = span.map(lambda v: round(v, 2))

    # completeness gate; infinities from bad numbers count as missing
    numeric = df[_NUMERIC_FIELDS + ["close_ratio", "spread"]].to_numpy(dtype=float)
    df = df[np.isfinite(numeric).all(axis=1)].dropna()

    records = [
        NormalizedRecord(
            slug=row.slug,
            symbol=row.symbol,
            name=row.name,
            date=row.date,
            rank=int(row.rank),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            market=float(row.market),
            close_ratio=float(row.close_ratio),
            spread=float(row.spread),
        )
        for row in df.itertuples(index=False)
    ]

    dropped = total - len(records)
    if dropped:
        logger.info(f"Normalizer: dropped {dropped} of {total} rows with unusable fields")
    return records

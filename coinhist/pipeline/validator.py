"""Output validator — checks the invariants of a finished history table.

Checks:
  1. Columns present and in output order
  2. Zero nulls in any column
  3. close_ratio within [0, 1], or exactly 0 when high == low
  4. spread == round(high - low, 2) and never negative
  5. Rows ordered by (rank, date) ascending

Usage:
    python -m coinhist.pipeline.validator history.csv
"""

import sys
from typing import List, Tuple

import pandas as pd

from coinhist.models.datatypes import OUTPUT_COLUMNS


def validate(df: pd.DataFrame) -> Tuple[bool, List[str]]:
    """Run all validation checks against a history table.

    Args:
        df: Table returned by the pipeline (or loaded back from CSV).

    Returns:
        Tuple of ``(passed: bool, messages: list[str])``.
        ``messages`` contains PASS/FAIL lines for each check.
    """
    messages: List[str] = []
    passed = True

    # ── columns ───────────────────────────────────────────────────────────────
    if df.empty:
        return False, ["FAIL  table is empty"]
    if list(df.columns) != OUTPUT_COLUMNS:
        missing = [c for c in OUTPUT_COLUMNS if c not in df.columns]
        return False, [f"FAIL  columns {list(df.columns)} (missing: {missing})"]
    messages.append(f"PASS  columns = {OUTPUT_COLUMNS}")

    # ── check 2: nulls ────────────────────────────────────────────────────────
    null_counts = df.isna().sum()
    null_cols = {col: int(n) for col, n in null_counts.items() if n}
    if not null_cols:
        messages.append(f"PASS  0 nulls in {len(df)} rows")
    else:
        messages.append(f"FAIL  nulls per column: {null_cols}")
        passed = False

    # ── check 3: close_ratio ──────────────────────────────────────────────────
    flat = df["high"] == df["low"]
    ratio = df["close_ratio"]
    bad_ratio = df[(flat & (ratio != 0)) | (~flat & ((ratio < 0) | (ratio > 1)))]
    if bad_ratio.empty:
        messages.append("PASS  close_ratio ∈ [0, 1] (0 when high == low)")
    else:
        messages.append(
            f"FAIL  close_ratio out of range in {len(bad_ratio)} rows: "
            f"{bad_ratio.index[:3].tolist()}"
        )
        passed = False

    # ── check 4: spread ───────────────────────────────────────────────────────
    expected = (df["high"] - df["low"]).map(lambda v: round(v, 2))
    bad_spread = df[(df["spread"] != expected) | (df["spread"] < 0)]
    if bad_spread.empty:
        messages.append("PASS  spread == round(high - low, 2) >= 0")
    else:
        messages.append(
            f"FAIL  spread mismatch in {len(bad_spread)} rows: {bad_spread.index[:3].tolist()}"
        )
        passed = False

    # ── check 5: ordering ─────────────────────────────────────────────────────
    dates = pd.to_datetime(df["date"])
    keys = list(zip(df["rank"], dates))
    if all(a <= b for a, b in zip(keys, keys[1:])):
        messages.append("PASS  rows ordered by (rank, date)")
    else:
        messages.append("FAIL  rows not ordered by (rank, date)")
        passed = False

    return passed, messages


def main() -> int:
    if len(sys.argv) < 2:
        print("Usage: python -m coinhist.pipeline.validator <path_to_csv>")
        return 1
    try:
        df = pd.read_csv(sys.argv[1])
    except (OSError, pd.errors.ParserError) as exc:
        print(f"FAIL  could not read CSV: {exc}")
        return 1
    passed, messages = validate(df)
    for msg in messages:
        print(msg)
    if passed:
        print("\nVALIDATION PASSED ✓")
        return 0
    else:
        print("\nVALIDATION FAILED ✗")
        return 1


if __name__ == "__main__":
    sys.exit(main())

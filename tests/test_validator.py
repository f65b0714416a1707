"""Tests for the output table validator."""

from datetime import date

import pandas as pd

from coinhist.models.datatypes import OUTPUT_COLUMNS
from coinhist.pipeline.validator import validate


def _table(rows):
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def _row(rank=1, day=1, high=100.0, low=90.0, close=95.0, ratio=0.5, spread=10.0):
    return ["btc", "BTC", "Bitcoin", date(2018, 1, day), rank,
            90.0, high, low, close, 1.0, 2.0, ratio, spread]


def test_valid_table_passes() -> None:
    passed, messages = validate(_table([_row(day=1), _row(day=2), _row(rank=2)]))

    assert passed
    assert all(m.startswith("PASS") for m in messages)


def test_empty_table_fails() -> None:
    passed, messages = validate(_table([]))

    assert not passed
    assert messages == ["FAIL  table is empty"]


def test_wrong_columns_fail() -> None:
    passed, messages = validate(pd.DataFrame({"slug": ["btc"]}))

    assert not passed
    assert "missing" in messages[0]


def test_detects_each_violation() -> None:
    rows = [
        _row(rank=2),
        _row(rank=1),
        _row(day=3, ratio=1.5),
        _row(day=4, high=5.0, low=5.0, close=5.0, ratio=0.2, spread=0.0),
        _row(day=5, spread=9.0),
    ]

    passed, messages = validate(_table(rows))

    assert not passed
    failures = [m for m in messages if m.startswith("FAIL")]
    assert len(failures) == 3


def test_spread_compared_exactly() -> None:
    # 2.675 is stored just below the half-step, so round(2.675, 2) == 2.67
    exact = _row(high=2.675, low=0.0, close=0.0, ratio=0.0, spread=2.67)
    off_by_rounding = _row(day=2, high=2.675, low=0.0, close=0.0, ratio=0.0, spread=2.68)

    assert validate(_table([exact]))[0]
    passed, messages = validate(_table([exact, off_by_rounding]))

    assert not passed
    assert any(m.startswith("FAIL  spread mismatch in 1 rows") for m in messages)

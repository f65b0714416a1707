"""Tests for the bounded-concurrency dispatcher."""

import threading
import time

import pytest

from coinhist.core.exceptions import ConfigError, FetchError
from coinhist.models.datatypes import CatalogEntry
from coinhist.pipeline.dispatcher import log_progress, run_batch
from conftest import raw


def _entries(n: int):
    return [
        CatalogEntry(symbol=f"C{i}", name=f"Coin {i}", rank=i + 1, slug=f"coin-{i}",
                     source_location=f"mem://coin-{i}")
        for i in range(n)
    ]


def _fetch_ok(source_location, slug):
    return [raw(slug)]


class TestRunBatch:
    @pytest.mark.parametrize("concurrency", [1, 4])
    def test_one_outcome_per_entry(self, concurrency) -> None:
        entries = _entries(6)

        outcomes = run_batch(entries, _fetch_ok, concurrency=concurrency)

        assert len(outcomes) == 6
        assert {o.entry.slug for o in outcomes} == {e.slug for e in entries}
        assert all(o.ok for o in outcomes)
        for outcome in outcomes:
            assert outcome.records[0].slug == outcome.entry.slug

    @pytest.mark.parametrize("concurrency", [1, 3])
    def test_failures_are_removed_not_raised(self, concurrency) -> None:
        def fetch(source_location, slug):
            if slug in ("coin-1", "coin-4"):
                raise FetchError("boom")
            if slug == "coin-2":
                raise ValueError("unexpected table")
            return [raw(slug)]

        outcomes = run_batch(_entries(6), fetch, concurrency=concurrency)

        failed = sorted(o.entry.slug for o in outcomes if not o.ok)
        assert failed == ["coin-1", "coin-2", "coin-4"]
        assert all(o.records is None for o in outcomes if not o.ok)
        assert len(outcomes) == 6

    def test_none_result_counts_as_empty_success(self) -> None:
        outcomes = run_batch(_entries(1), lambda loc, slug: None, concurrency=1)

        assert outcomes[0].ok
        assert outcomes[0].records == []

    @pytest.mark.parametrize("concurrency", [1, 4])
    def test_progress_counts_every_completion(self, concurrency) -> None:
        seen = []

        run_batch(_entries(7), _fetch_ok, concurrency=concurrency, progress=seen.append)

        assert seen == [1, 2, 3, 4, 5, 6, 7]

    def test_progress_reported_from_calling_thread(self) -> None:
        threads = set()

        def progress(completed):
            threads.add(threading.current_thread())

        run_batch(_entries(5), _fetch_ok, concurrency=3, progress=progress)

        assert threads == {threading.current_thread()}

    def test_at_most_concurrency_tasks_in_flight(self) -> None:
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def fetch(source_location, slug):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.02)
            with lock:
                state["active"] -= 1
            return [raw(slug)]

        run_batch(_entries(10), fetch, concurrency=3)

        assert 1 <= state["peak"] <= 3

    def test_sequential_runs_in_calling_thread_in_order(self) -> None:
        calls = []

        def fetch(source_location, slug):
            calls.append((slug, threading.current_thread()))
            return []

        run_batch(_entries(4), fetch, concurrency=1)

        assert [slug for slug, _ in calls] == ["coin-0", "coin-1", "coin-2", "coin-3"]
        assert {t for _, t in calls} == {threading.current_thread()}

    def test_default_concurrency_uses_cpu_count(self, monkeypatch) -> None:
        monkeypatch.setattr("coinhist.pipeline.dispatcher.os.cpu_count", lambda: 2)

        outcomes = run_batch(_entries(3), _fetch_ok)

        assert len(outcomes) == 3

    def test_empty_batch(self) -> None:
        assert run_batch([], _fetch_ok, concurrency=4) == []

    @pytest.mark.parametrize("bad", [0, -1, "many"])
    def test_invalid_concurrency(self, bad) -> None:
        with pytest.raises(ConfigError, match="concurrency"):
            run_batch(_entries(2), _fetch_ok, concurrency=bad)


class TestLogProgress:
    def test_logs_selected_steps(self, caplog) -> None:
        report = log_progress(total=4, every=2)

        with caplog.at_level("INFO", logger="coinhist"):
            for i in range(1, 5):
                report(i)

        lines = [r.getMessage() for r in caplog.records if "coins fetched" in r.getMessage()]
        assert lines == [
            "Dispatcher: 2/4 coins fetched (50%)",
            "Dispatcher: 4/4 coins fetched (100%)",
        ]

from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest
from fake_framework import write_framework, write_suite

from parallel_suites import dispatch as dispatch_module
from parallel_suites.collect import collect_results
from parallel_suites.dispatch import WorkerDispatcher
from parallel_suites.models import WorkerGroup


def _exit_argv(code: int):
    def argv(group_file: Path, results_dir: Path, suite_command: str) -> list[str]:
        return [sys.executable, "-c", f"import sys; sys.exit({code})"]

    return argv


def test_dispatch_skips_empty_groups(tmp_path: Path) -> None:
    dispatcher = WorkerDispatcher(tmp_path / "results", "unused", worker_argv=_exit_argv(0))
    groups = [WorkerGroup(index=0), WorkerGroup(index=1, members=("a",)), WorkerGroup(index=2)]
    outcomes = dispatcher.dispatch(groups)
    assert [outcome.group_index for outcome in outcomes] == [1]
    assert outcomes[0].ok
    assert dispatcher.dispatch([WorkerGroup(index=0)]) == []


def test_dispatch_does_not_raise_on_worker_failure(tmp_path: Path) -> None:
    dispatcher = WorkerDispatcher(tmp_path / "results", "unused", worker_argv=_exit_argv(7))
    outcomes = dispatcher.dispatch(
        [WorkerGroup(index=0, members=("a",)), WorkerGroup(index=1, members=("b",))]
    )
    assert [outcome.returncode for outcome in outcomes] == [7, 7]
    assert not any(outcome.ok for outcome in outcomes)


def test_dispatch_survives_unlaunchable_worker(tmp_path: Path) -> None:
    def argv(group_file: Path, results_dir: Path, suite_command: str) -> list[str]:
        return [str(tmp_path / "missing-interpreter")]

    dispatcher = WorkerDispatcher(tmp_path / "results", "unused", worker_argv=argv)
    outcomes = dispatcher.dispatch([WorkerGroup(index=0, members=("a",))])
    assert outcomes[0].returncode is None


def test_dispatch_joins_all_workers_before_returning(tmp_path: Path) -> None:
    command = write_framework(tmp_path)
    slow = write_suite(tmp_path, "slow", passes=1, sleep=0.5)
    fast = write_suite(tmp_path, "fast", passes=2)
    crashed = write_suite(tmp_path, "crashed", crash=True)
    results_dir = tmp_path / "results"

    dispatcher = WorkerDispatcher(results_dir, command, cwd=tmp_path)
    started = time.perf_counter()
    outcomes = dispatcher.dispatch(
        [
            WorkerGroup(index=0, members=(slow,)),
            WorkerGroup(index=1, members=(fast, crashed)),
        ]
    )
    assert time.perf_counter() - started >= 0.5
    assert [outcome.ok for outcome in outcomes] == [True, False]

    collected = collect_results(results_dir)
    assert set(collected.results) == {slow, fast}


def _marker_argv(marker: Path):
    def argv(group_file: Path, results_dir: Path, suite_command: str) -> list[str]:
        script = (
            "import pathlib, time; time.sleep(0.3); "
            f"pathlib.Path({str(marker)!r}).write_text('done')"
        )
        return [sys.executable, "-c", script]

    return argv


def _failing_second_write(monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    real_write = dispatch_module.write_json_atomic
    calls = {"count": 0}

    def write(path: Path, payload: object) -> None:
        calls["count"] += 1
        if calls["count"] == 2:
            raise error
        real_write(path, payload)

    monkeypatch.setattr(dispatch_module, "write_json_atomic", write)


def test_group_file_write_error_is_recorded_not_raised(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _failing_second_write(monkeypatch, OSError("disk full"))
    marker = tmp_path / "group0.done"
    dispatcher = WorkerDispatcher(tmp_path / "results", "unused", worker_argv=_marker_argv(marker))
    outcomes = dispatcher.dispatch(
        [WorkerGroup(index=0, members=("a",)), WorkerGroup(index=1, members=("b",))]
    )
    assert [outcome.returncode for outcome in outcomes] == [0, None]
    assert marker.read_text() == "done"


def test_started_workers_are_joined_when_launch_raises(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _failing_second_write(monkeypatch, RuntimeError("interrupted"))
    marker = tmp_path / "group0.done"
    dispatcher = WorkerDispatcher(tmp_path / "results", "unused", worker_argv=_marker_argv(marker))
    with pytest.raises(RuntimeError, match="interrupted"):
        dispatcher.dispatch(
            [WorkerGroup(index=0, members=("a",)), WorkerGroup(index=1, members=("b",))]
        )
    assert marker.read_text() == "done"

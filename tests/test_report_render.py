from __future__ import annotations

import io

from rich.console import Console

from parallel_suites.collect import CollectedResults
from parallel_suites.models import ErrorRecord, SuiteResult
from parallel_suites.reconcile import reconcile
from parallel_suites.report import format_time, render_report, time_saved_line


def _console() -> Console:
    return Console(record=True, width=120, file=io.StringIO())


def test_format_time() -> None:
    assert format_time(0) == "0.00s"
    assert format_time(1534) == "1.53s"
    assert format_time(125_000) == "2m 05s"


def test_time_saved_line() -> None:
    line = time_saved_line(10_000, 4_000)
    assert line == "Total run time: 10.000s, executed in: 4.000s, saved 6.000s (~60%)"
    assert time_saved_line(0, 10).endswith("(~0%)")


def test_render_report_lists_errors_in_order() -> None:
    failing = SuiteResult(
        suite_id="specs/[weird].py",
        duration_ms=1200.0,
        pass_count=1,
        fail_count=2,
        errors=[
            ErrorRecord(suite_id="specs/[weird].py", test_name="first", message="m1"),
            ErrorRecord(suite_id="specs/[weird].py", test_name="second", message="m2"),
        ],
    )
    collected = CollectedResults(
        results={failing.suite_id: failing}, error_map={failing.suite_id: failing.errors}
    )
    console = _console()
    render_report(collected, reconcile([failing.suite_id], collected), 500.0, console)
    text = console.export_text()
    assert "specs/[weird].py" in text
    assert text.index("1) first") < text.index("2) second")
    assert "2 test failure(s)" in text
    assert "Total run time" not in text


def test_render_report_missing_block() -> None:
    collected = CollectedResults(
        results={"a.py": SuiteResult(suite_id="a.py", duration_ms=5.0, pass_count=1)}
    )
    console = _console()
    render_report(collected, reconcile(["a.py", "b.py"], collected), 5.0, console)
    text = console.export_text()
    assert "Test suites found: 2" in text
    assert "Test suite results: 1" in text
    assert "- b.py" in text

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from parallel_suites.models import ErrorRecord


@dataclass(frozen=True)
class JUnitCounts:
    passes: int = 0
    failures: int = 0
    pending: int = 0
    errors: list[ErrorRecord] = field(default_factory=list)


def parse_junit_report(path: Path, suite_id: str) -> JUnitCounts:
    """Count outcomes in a JUnit XML report.

    A testcase with a ``failure`` or ``error`` child counts as failing and
    contributes one ErrorRecord, one with ``skipped`` counts as pending, and
    anything else counts as passing. Raises ``ET.ParseError`` on invalid XML.
    """
    root = ET.parse(path).getroot()
    if root.tag not in {"testsuites", "testsuite"}:
        raise ET.ParseError(f"unexpected junit root element: {root.tag}")
    passes = 0
    failures = 0
    pending = 0
    errors: list[ErrorRecord] = []
    for case in root.iter("testcase"):
        problem = case.find("failure")
        if problem is None:
            problem = case.find("error")
        if problem is not None:
            failures += 1
            errors.append(
                ErrorRecord(
                    suite_id=suite_id,
                    test_name=_test_name(case),
                    message=_first_line(problem.get("message") or problem.text or ""),
                )
            )
        elif case.find("skipped") is not None:
            pending += 1
        else:
            passes += 1
    return JUnitCounts(passes=passes, failures=failures, pending=pending, errors=errors)


def _test_name(case: ET.Element) -> str:
    name = case.get("name") or "?"
    classname = case.get("classname")
    if classname:
        return f"{classname}::{name}"
    return name


def _first_line(text: str) -> str:
    for line in text.strip().splitlines():
        if line.strip():
            return line.strip()
    return ""

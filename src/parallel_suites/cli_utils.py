from __future__ import annotations

import re
from collections.abc import Iterable

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def sanitize_ansi_path(value: str) -> str:
    return _ANSI_RE.sub("", value).strip()


def expand_suite_args(values: Iterable[str]) -> list[str]:
    expanded: list[str] = []
    for value in values:
        for item in sanitize_ansi_path(value).split(","):
            item = item.strip()
            if item and item not in expanded:
                expanded.append(item)
    return expanded


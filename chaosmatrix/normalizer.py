"""Title cleanup for lines that carried chaos markers."""

from __future__ import annotations

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def strip_marker(title: str, pattern: re.Pattern[str]) -> str:
    """Remove every match of ``pattern`` from the running title."""
    return pattern.sub(" ", title)


def clean_title(title: str) -> str:
    return _WHITESPACE_RUN.sub(" ", title).strip()

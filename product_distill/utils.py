"""Utility helpers for string normalization."""

from __future__ import annotations

import re
from typing import Set

WHITESPACE_PATTERN = re.compile(r"\s+")
WORD_STRIP_PATTERN = re.compile(r"[^a-z0-9\s]")


def collapse_whitespace(value: str) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def word_set(value: str) -> Set[str]:
    """Lower-case, drop punctuation and split into a set of words."""
    normalized = WORD_STRIP_PATTERN.sub("", value.lower())
    return set(normalized.split())


def truncate(value: str, limit: int | None, marker: str = "\n[truncated]") -> str:
    if limit is None or len(value) <= limit:
        return value
    return value[:limit] + marker

"""Heuristic column detection over export headers.

Exports from the source system name the same concept differently
("GTT Owner", "Owner Name", "Agent"...). Detection runs once per
dataset against the header list of its first row; every function here
is pure and deterministic for a given header sequence.
"""

from collections.abc import Iterable, Sequence

from .constants import (
    AGENT_EXACT_NAMES,
    AGENT_GENERIC_TOKENS,
    AGENT_PRIORITY_PATTERNS,
    SYNTHETIC_AGENT_COLUMN,
)
from .models import Row


def headers_of(rows: Sequence[Row]) -> list[str]:
    """Return the header list of a dataset (taken from its first row)."""
    return rows[0].headers if rows else []


def find_column(headers: Iterable[str], patterns: Iterable[str]) -> str | None:
    """Find the first header containing a pattern, trying patterns in priority order.

    Args:
        headers: Header names in column order.
        patterns: Lower-case substrings, highest priority first.

    Returns:
        str | None: The matching header as it appears in the data, or None.
    """
    header_list = list(headers)
    lowered = [header.lower() for header in header_list]
    for pattern in patterns:
        needle = pattern.lower()
        for header, lower in zip(header_list, lowered):
            if needle in lower:
                return header
    return None


def find_any_column(headers: Iterable[str], patterns: Iterable[str]) -> str | None:
    """Find the first header (in column order) containing any of the patterns."""
    needles = [pattern.lower() for pattern in patterns]
    for header in headers:
        lower = header.lower()
        if any(needle in lower for needle in needles):
            return header
    return None


def find_exact_column(headers: Iterable[str], names: Iterable[str]) -> str | None:
    """Find a header equal (case-insensitively, trimmed) to one of ``names``, in name order."""
    by_lower: dict[str, str] = {}
    for header in headers:
        by_lower.setdefault(header.strip().lower(), header)
    for name in names:
        if name in by_lower:
            return by_lower[name]
    return None


def find_agent_column(headers: Iterable[str]) -> str | None:
    """Identify the header holding the agent name.

    Tries, in order: the synthetic ``_agent`` column from grouped reports,
    source-system owner headers, exact generic names, any header containing
    a generic token, and finally the first header.

    Args:
        headers: Header names in column order.

    Returns:
        str | None: The agent column, or None only when there are no headers.
    """
    header_list = list(headers)
    if not header_list:
        return None

    if SYNTHETIC_AGENT_COLUMN in header_list:
        return SYNTHETIC_AGENT_COLUMN

    return (
        find_any_column(header_list, AGENT_PRIORITY_PATTERNS)
        or find_exact_column(header_list, AGENT_EXACT_NAMES)
        or find_any_column(header_list, AGENT_GENERIC_TOKENS)
        or header_list[0]
    )


def find_date_column(headers: Iterable[str], patterns: Iterable[str]) -> str | None:
    """Identify the date column using a dataset-specific pattern table."""
    return find_column(headers, patterns)

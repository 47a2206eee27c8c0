"""
Usage-pattern heuristics over consumed IDs.

These only produce hints; nothing here talks to the backend.

Example:
    >>> find_sequential_pattern([50000, 50001, 50002])
    50003
    >>> find_round_number_pattern([50000, 51000, 52000, 52001])
    PatternHint(pattern='Thousands', example=53000)
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from objid.core.assignment.models import FreeRange, PatternHint
from objid.core.ranges import Range

SEQUENTIAL_THRESHOLD = 0.7
ROUND_NUMBER_THRESHOLD = 0.3
ROUND_MULTIPLES = ((1000, "Thousands"), (100, "Hundreds"), (10, "Tens"))
MIN_FREE_RUN = 10
MAX_FREE_RUNS = 5

_CUSTOM_PATTERN = re.compile(r"^(\d+)(x+)$", re.IGNORECASE)


def find_sequential_pattern(ids: Iterable[int]) -> int | None:
    """
    Detect evenly spaced IDs.

    More than 70% of the gaps between sorted IDs must lie within 1 of the
    average gap.

    Returns:
        The next ID in the sequence, or None when there is no pattern
    """
    ordered = sorted(ids)
    if len(ordered) < 2:
        return None

    gaps = [b - a for a, b in zip(ordered, ordered[1:])]
    average = sum(gaps) / len(gaps)
    consistent = sum(1 for g in gaps if abs(g - average) <= 1)
    if consistent > len(gaps) * SEQUENTIAL_THRESHOLD:
        # round half up
        return ordered[-1] + math.floor(average + 0.5)
    return None


def find_round_number_pattern(ids: Iterable[int]) -> PatternHint | None:
    """First of thousands, hundreds, tens that at least 30% of IDs are multiples of."""
    ids = list(ids)
    if not ids:
        return None

    for multiple, name in ROUND_MULTIPLES:
        matching = sum(1 for i in ids if i % multiple == 0)
        if matching >= len(ids) * ROUND_NUMBER_THRESHOLD:
            next_round = math.ceil((max(ids) + 1) / multiple) * multiple
            return PatternHint(pattern=name, example=next_round)
    return None


def find_custom_pattern(ids: Iterable[int], pattern: str) -> PatternHint | None:
    """
    Next ID for a digit-prefix pattern such as ``"5xxx"``.

    The prefix followed by one ``x`` per free digit selects a block
    (``5xxx`` is 5000..5999); the example is the block start plus the number
    of IDs already in it plus one.
    """
    match = _CUSTOM_PATTERN.match(pattern.strip())
    if not match:
        return None

    prefix = int(match.group(1))
    multiplier = 10 ** len(match.group(2))
    used = sum(1 for i in ids if i // multiplier == prefix)
    return PatternHint(pattern=f"Custom ({pattern})", example=prefix * multiplier + used + 1)


def analyze_patterns(ids: Iterable[int], pattern: str | None = None) -> list[PatternHint]:
    ids = list(ids)
    if not ids:
        return []

    hints: list[PatternHint] = []
    sequential = find_sequential_pattern(ids)
    if sequential is not None:
        hints.append(PatternHint(pattern="Sequential", example=sequential))

    round_number = find_round_number_pattern(ids)
    if round_number is not None:
        hints.append(round_number)

    if pattern:
        custom = find_custom_pattern(ids, pattern)
        if custom is not None:
            hints.append(custom)

    return hints


def find_free_runs(range_: Range, used: Iterable[int], min_size: int = MIN_FREE_RUN) -> list[FreeRange]:
    """Contiguous runs of at least ``min_size`` unused IDs within a range."""
    runs: list[FreeRange] = []
    start = range_.from_
    for used_id in sorted(set(i for i in used if range_.contains(i))):
        if used_id - start >= min_size:
            runs.append(FreeRange(from_=start, to=used_id - 1, available=used_id - start))
        start = used_id + 1

    if range_.to - start + 1 >= min_size:
        runs.append(FreeRange(from_=start, to=range_.to, available=range_.to - start + 1))
    return runs


def analyze_range_availability(
    ranges: Iterable[Range], used: Iterable[int], limit: int = MAX_FREE_RUNS
) -> list[FreeRange]:
    """The largest free runs across all ranges, biggest first."""
    used = list(used)
    runs: list[FreeRange] = []
    for range_ in ranges:
        runs.extend(find_free_runs(range_, used))
    runs.sort(key=lambda r: r.available, reverse=True)
    return runs[:limit]


__all__ = [
    "analyze_patterns",
    "analyze_range_availability",
    "find_custom_pattern",
    "find_free_runs",
    "find_round_number_pattern",
    "find_sequential_pattern",
]

"""
Numeric ID ranges and the arithmetic the rest of the package needs.

A range is a closed interval ``[from, to]`` of non-negative integers. The
backend speaks ``{"from": ..., "to": ...}`` objects; project files may also
use the compact ``"50000..50099"`` string form.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Range(BaseModel):
    """Closed interval of permissible IDs."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: int = Field(alias="from", ge=0)
    to: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> Range:
        if self.from_ > self.to:
            raise ValueError(f"Range start {self.from_} is greater than end {self.to}")
        return self

    def contains(self, value: int) -> bool:
        return self.from_ <= value <= self.to

    @property
    def size(self) -> int:
        return self.to - self.from_ + 1

    def to_payload(self) -> dict[str, int]:
        """Serialize in the backend's ``{"from", "to"}`` shape."""
        return {"from": self.from_, "to": self.to}

    def __str__(self) -> str:
        return f"{self.from_}..{self.to}"


def parse_range(value: Any) -> Range:
    """
    Build a Range from any of the accepted representations.

    Accepts a Range, a ``{"from", "to"}`` mapping, a ``[from, to]`` pair,
    or a ``"from..to"`` string.

    Raises:
        ValueError: If the value cannot be interpreted as a range
    """
    if isinstance(value, Range):
        return value
    if isinstance(value, str):
        start, sep, end = value.partition("..")
        if not sep:
            raise ValueError(f"Invalid range string: {value!r}")
        return Range(from_=int(start.strip()), to=int(end.strip()))
    if isinstance(value, dict):
        return Range.model_validate(value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Range(from_=int(value[0]), to=int(value[1]))
    raise ValueError(f"Invalid range: {value!r}")


def parse_ranges(values: Iterable[Any]) -> list[Range]:
    return [parse_range(v) for v in values]


def is_in_ranges(value: int, ranges: Iterable[Range]) -> bool:
    return any(r.contains(value) for r in ranges)


def find_overlap(first: Range, second: Range) -> Range | None:
    """
    Intersection of two ranges.

    Returns:
        The overlapping sub-interval, or None when the ranges are disjoint
        (adjacent ranges such as 1..10 and 11..20 do not overlap)
    """
    start = max(first.from_, second.from_)
    end = min(first.to, second.to)
    if start <= end:
        return Range(from_=start, to=end)
    return None


def limit_ranges(ranges: Iterable[Range], require: int) -> list[Range]:
    """
    Narrow a search to the single range containing ``require``.

    Example:
        >>> limit_ranges([Range(from_=50000, to=59999), Range(from_=60000, to=69999)], 65000)
        [Range(from_=60000, to=69999)]
        >>> limit_ranges([Range(from_=50000, to=59999)], 99999)
        []
    """
    for r in ranges:
        if r.contains(require):
            return [r]
    return []


def ranges_above(ranges: Iterable[Range], floor: int) -> list[Range]:
    """Clip ranges so that only IDs strictly greater than ``floor`` remain."""
    clipped: list[Range] = []
    for r in ranges:
        if r.to <= floor:
            continue
        clipped.append(r if r.from_ > floor else Range(from_=floor + 1, to=r.to))
    return clipped


__all__ = [
    "Range",
    "parse_range",
    "parse_ranges",
    "is_in_ranges",
    "find_overlap",
    "limit_ranges",
    "ranges_above",
]

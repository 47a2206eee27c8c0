"""
Tests for range parsing and range arithmetic.
"""

import pytest
from pydantic import ValidationError

from objid.core.ranges import (
    Range,
    find_overlap,
    is_in_ranges,
    limit_ranges,
    parse_range,
    parse_ranges,
    ranges_above,
)


class TestRange:
    def test_alias_round_trip(self):
        r = Range.model_validate({"from": 50000, "to": 50099})
        assert r.from_ == 50000
        assert r.to_payload() == {"from": 50000, "to": 50099}
        assert r.size == 100
        assert str(r) == "50000..50099"

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            Range(from_=10, to=5)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            Range(from_=-1, to=5)

    def test_bounds_inclusive(self):
        r = Range(from_=10, to=20)
        assert r.contains(10)
        assert r.contains(20)
        assert not r.contains(21)


class TestParseRange:
    @pytest.mark.parametrize(
        "value",
        ["50000..50099", " 50000 .. 50099 ", {"from": 50000, "to": 50099}, [50000, 50099], (50000, 50099)],
    )
    def test_accepted_forms(self, value):
        assert parse_range(value) == Range(from_=50000, to=50099)

    @pytest.mark.parametrize("value", ["50000-50099", [1, 2, 3], 42])
    def test_rejected_forms(self, value):
        with pytest.raises(ValueError):
            parse_range(value)

    def test_parse_ranges(self):
        assert parse_ranges(["1..5", {"from": 7, "to": 9}]) == [
            Range(from_=1, to=5),
            Range(from_=7, to=9),
        ]


class TestArithmetic:
    def test_is_in_ranges(self):
        ranges = [Range(from_=1, to=5), Range(from_=10, to=20)]
        assert is_in_ranges(15, ranges)
        assert not is_in_ranges(7, ranges)
        assert not is_in_ranges(7, [])

    def test_overlap(self):
        overlap = find_overlap(Range(from_=50000, to=50499), Range(from_=50400, to=50999))
        assert overlap == Range(from_=50400, to=50499)

    def test_adjacent_ranges_do_not_overlap(self):
        assert find_overlap(Range(from_=1, to=10), Range(from_=11, to=20)) is None

    def test_single_point_overlap(self):
        assert find_overlap(Range(from_=1, to=10), Range(from_=10, to=20)) == Range(from_=10, to=10)

    def test_limit_ranges(self):
        ranges = [Range(from_=50000, to=59999), Range(from_=60000, to=69999)]
        assert limit_ranges(ranges, 65000) == [Range(from_=60000, to=69999)]
        assert limit_ranges(ranges, 99999) == []

    def test_ranges_above(self):
        ranges = [Range(from_=1, to=5), Range(from_=10, to=20)]
        assert ranges_above(ranges, 3) == [Range(from_=4, to=5), Range(from_=10, to=20)]
        assert ranges_above(ranges, 5) == [Range(from_=10, to=20)]
        assert ranges_above(ranges, 20) == []

from __future__ import annotations

import pytest

from services.errors import InvalidRange, ValidationError
from services.span import duration_class_for_minutes, resolve_span, span_for_minutes, span_from_slot


@pytest.mark.parametrize(
    "end, span",
    [("09:30", 3), ("10:00", 4), ("10:30", 5), ("12:30", 9)],
)
def test_span_for_common_lengths(end, span):
    assert resolve_span("08:00", end).span == span


def test_span_falls_back_to_ceiling():
    assert resolve_span("08:00", "08:30").span == 1
    assert resolve_span("08:00", "08:45").span == 2
    assert resolve_span("08:00", "08:10").span == 1
    assert span_for_minutes(300) == 10


def test_span_table_agrees_with_formula():
    for minutes in (90, 120, 150, 180, 210, 240, 270):
        assert span_for_minutes(minutes) == minutes // 30


def test_duration_class_is_coarse():
    assert [duration_class_for_minutes(m) for m in (30, 90, 91, 120, 150, 180, 181, 270)] == [1, 1, 2, 2, 3, 3, 4, 4]
    info = resolve_span("08:00", "10:30")
    assert (info.minutes, info.span, info.duration_class) == (150, 5, 3)


@pytest.mark.parametrize("start, end", [("10:00", "10:00"), ("10:00", "09:30")])
def test_non_positive_range_is_invalid(start, end):
    with pytest.raises(InvalidRange):
        resolve_span(start, end)


def test_invalid_range_is_a_validation_error():
    with pytest.raises(ValidationError) as exc:
        resolve_span("11:00", "10:00")
    assert exc.value.code == "INVALID_RANGE"


def test_malformed_time():
    with pytest.raises(ValidationError):
        resolve_span("8h", "10:00")


def test_span_from_slot_counts_from_the_drawn_slot():
    assert span_from_slot("09:00", "10:30", slot_start=540) == 3
    assert span_from_slot("09:10", "10:10", slot_start=540) == 3
    assert span_from_slot("09:10", "09:40", slot_start=540) == 2

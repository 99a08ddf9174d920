from __future__ import annotations

from dataclasses import dataclass
from math import ceil

from services.errors import InvalidRange
from services.slot_catalog import parse_hhmm


SLOT_MINUTES = 30

# Common lesson lengths (minutes -> periods). Every entry agrees with
# ceil(minutes / SLOT_MINUTES); an entry here only matters if a length is
# ever deliberately exempted from the 30-minute grid.
SPAN_OVERRIDES: dict[int, int] = {
    90: 3,
    120: 4,
    150: 5,
    180: 6,
    210: 7,
    240: 8,
    270: 9,
}


@dataclass(frozen=True)
class SpanInfo:
    minutes: int
    span: int
    duration_class: int


def span_for_minutes(minutes: int, *, slot_minutes: int = SLOT_MINUTES) -> int:
    if slot_minutes == SLOT_MINUTES and minutes in SPAN_OVERRIDES:
        return SPAN_OVERRIDES[minutes]
    return max(1, ceil(minutes / slot_minutes))


def duration_class_for_minutes(minutes: int) -> int:
    # Coarse display bucket; never used to derive the span.
    if minutes <= 90:
        return 1
    if minutes <= 120:
        return 2
    if minutes <= 180:
        return 3
    return 4


def resolve_span(start_time: str, end_time: str, *, slot_minutes: int = SLOT_MINUTES) -> SpanInfo:
    minutes = parse_hhmm(end_time) - parse_hhmm(start_time)
    if minutes <= 0:
        raise InvalidRange(
            "End time must be after start time",
            errors=[f"INVALID_RANGE:{start_time}-{end_time}"],
        )
    return SpanInfo(
        minutes=minutes,
        span=span_for_minutes(minutes, slot_minutes=slot_minutes),
        duration_class=duration_class_for_minutes(minutes),
    )


def span_from_slot(start_time: str, end_time: str, *, slot_start: int, slot_minutes: int = SLOT_MINUTES) -> int:
    """Periods a lesson holds when drawn from `slot_start` (minutes after midnight).

    A snapped lesson starts on the grid earlier than it really does, so its
    span is counted from the slot to the real end time.
    """

    info = resolve_span(start_time, end_time, slot_minutes=slot_minutes)
    if slot_start == parse_hhmm(start_time):
        return info.span
    return max(1, ceil((parse_hhmm(end_time) - slot_start) / slot_minutes))

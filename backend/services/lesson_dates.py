from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable


def week_start_on_or_before(today: date, week_start_weekday: int) -> date:
    return today - timedelta(days=(today.weekday() - week_start_weekday) % 7)


def scheduled_lesson_dates(
    day_indexes: Iterable[int],
    *,
    today: date,
    week_start_weekday: int = 4,
    weeks: int = 104,
) -> list[date]:
    """Upcoming calendar dates for lessons held on the given grid days.

    Grid day 0 is `week_start_weekday` (0=Monday). Dates before `today` are
    dropped; the result is sorted with duplicates removed.
    """

    days = sorted({int(d) for d in day_indexes if d is not None})
    start = week_start_on_or_before(today, week_start_weekday)

    out: set[date] = set()
    for week in range(weeks):
        for d in days:
            lesson = start + timedelta(days=week * 7 + d)
            if lesson >= today:
                out.add(lesson)
    return sorted(out)

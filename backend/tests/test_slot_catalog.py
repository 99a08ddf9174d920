from __future__ import annotations

import pytest

from services.errors import ValidationError
from services.slot_catalog import SlotCatalog, format_hhmm, parse_hhmm


def test_default_catalog_covers_operating_day(catalog):
    slots = catalog.slots()
    assert len(catalog) == 30
    assert slots[0] == (1, "08:00")
    assert slots[1] == (2, "08:30")
    assert slots[-1] == (30, "22:30")


def test_round_trip_every_period(catalog):
    for period in catalog.periods:
        assert catalog.period_for_time(catalog.time_for_period(period)) == period


def test_period_for_time_is_exact_match_only(catalog):
    assert catalog.period_for_time("09:00") == 3
    assert catalog.period_for_time("9:00") == 3
    assert catalog.period_for_time("08:15") is None
    assert catalog.period_for_time("07:30") is None
    assert catalog.period_for_time("23:00") is None
    assert catalog.period_for_time("nope") is None


def test_time_for_period_out_of_range(catalog):
    assert catalog.time_for_period(0) is None
    assert catalog.time_for_period(31) is None


def test_resolve_period_rejects_off_grid_by_default(catalog):
    with pytest.raises(ValidationError) as exc:
        catalog.resolve_period("08:10")
    assert exc.value.errors == ["START_TIME_OFF_GRID:08:10"]


def test_resolve_period_snap_uses_slot_holding_the_start(catalog):
    assert catalog.resolve_period("08:10", policy="snap") == 1
    assert catalog.resolve_period("08:29", policy="snap") == 1
    assert catalog.resolve_period("08:40", policy="snap") == 2
    assert catalog.resolve_period("22:40", policy="snap") == 30


def test_resolve_period_outside_window_fails_for_any_policy(catalog):
    for policy in ("reject", "snap"):
        with pytest.raises(ValidationError):
            catalog.resolve_period("07:50", policy=policy)
        with pytest.raises(ValidationError):
            catalog.resolve_period("23:00", policy=policy)


def test_parse_and_format():
    assert parse_hhmm("08:30") == 510
    assert format_hhmm(510) == "08:30"
    for bad in ("24:00", "12:60", "1230", "", None):
        with pytest.raises(ValidationError):
            parse_hhmm(bad)


def test_custom_spacing():
    cat = SlotCatalog.from_times("09:00", "12:00", 60)
    assert cat.slots() == [(1, "09:00"), (2, "10:00"), (3, "11:00"), (4, "12:00")]
    assert cat.period_for_time("09:30") is None


def test_catalog_is_immutable(catalog):
    with pytest.raises(Exception):
        catalog.step_minutes = 15

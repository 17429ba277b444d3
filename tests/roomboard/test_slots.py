from datetime import date, datetime

import pytest

from roomboard.hours import ALWAYS_OPEN_WINDOW
from roomboard.models import SLOT_WIDTH, HoursWindow
from roomboard.slots import (
    HoursParseError, build_slot_grid, format_label, resolve_bounds, spans_midnight,
)


DAY = date(2026, 10, 19)


def _window(open_time, close_time):
    return HoursWindow(open_time=open_time, close_time=close_time)


def _assert_contiguous(slots):
    for slot in slots:
        assert slot.end - slot.start == SLOT_WIDTH
    for current, following in zip(slots, slots[1:]):
        assert current.end == following.start
        assert current.start < following.start


@pytest.mark.parametrize("open_time,close_time,expected_count", [
    ("08:00", "23:00", 30),
    ("8:00am", "11:00pm", 30),
    ("9:00am", "5:00pm", 16),
    ("7:30", "9:00 pm", 27),
    ("10am", "12pm", 4),
])
def test_grid_is_contiguous_and_ascending(tz, open_time, close_time, expected_count):
    slots = build_slot_grid(DAY, _window(open_time, close_time), tz)

    assert len(slots) == expected_count
    _assert_contiguous(slots)


def test_grid_bounds_and_labels(tz):
    slots = build_slot_grid(DAY, _window("08:00", "23:00"), tz)

    assert slots[0].label == "8:00 AM"
    assert slots[1].label == "8:30 AM"
    assert slots[-1].label == "10:30 PM"
    assert (slots[-1].end.hour, slots[-1].end.minute) == (23, 0)
    assert slots[0].key == "2026-10-19 08:00"


def test_midnight_rollover_extends_to_next_day(tz):
    slots = build_slot_grid(DAY, _window("08:00", "01:00"), tz)

    assert len(slots) == 34
    _assert_contiguous(slots)
    assert slots[-1].key == "2026-10-20 00:30"
    assert slots[-1].end.date() == date(2026, 10, 20)
    assert (slots[-1].end.hour, slots[-1].end.minute) == (1, 0)


def test_always_open_day_is_a_full_24_hours(tz):
    slots = build_slot_grid(DAY, ALWAYS_OPEN_WINDOW, tz)

    assert len(slots) == 48
    assert slots[0].label == "12:00 AM"
    assert slots[0].key == "2026-10-19 00:00"
    assert slots[-1].key == "2026-10-19 23:30"
    assert slots[-1].end.date() == date(2026, 10, 20)


def test_open_is_rounded_down_to_half_hour(tz):
    quarter_past = build_slot_grid(DAY, _window("8:15am", "10:00am"), tz)
    quarter_to = build_slot_grid(DAY, _window("8:45am", "10:00am"), tz)

    assert [s.label for s in quarter_past] == ["8:00 AM", "8:30 AM", "9:00 AM", "9:30 AM"]
    assert [s.label for s in quarter_to] == ["8:30 AM", "9:00 AM", "9:30 AM"]


def test_last_slot_never_passes_close(tz):
    slots = build_slot_grid(DAY, _window("9:00am", "10:45am"), tz)

    assert slots[-1].label == "10:00 AM"
    _, close_at = resolve_bounds(DAY, _window("9:00am", "10:45am"), tz)
    assert all(slot.end <= close_at for slot in slots)


def test_window_shorter_than_a_slot_gives_empty_grid(tz):
    assert build_slot_grid(DAY, _window("8:10am", "8:20am"), tz) == []


def test_unparseable_bounds_are_a_hard_error(tz):
    with pytest.raises(HoursParseError):
        build_slot_grid(DAY, _window("sunrise", "10:00pm"), tz)


def test_spans_midnight(tz):
    assert spans_midnight(DAY, _window("08:00", "01:00"), tz)
    assert spans_midnight(DAY, ALWAYS_OPEN_WINDOW, tz)
    assert not spans_midnight(DAY, _window("08:00", "23:00"), tz)
    assert not spans_midnight(DAY, _window("whenever", "01:00"), tz)


def test_dst_fall_back_day_has_fifty_slots(tz):
    slots = build_slot_grid(date(2026, 11, 1), ALWAYS_OPEN_WINDOW, tz)

    assert len(slots) == 50
    _assert_contiguous(slots)


def test_format_label_drops_leading_zero(tz):
    assert format_label(tz.localize(datetime(2026, 10, 19, 9, 5))) == "9:05 AM"
    assert format_label(tz.localize(datetime(2026, 10, 19, 12, 30))) == "12:30 PM"

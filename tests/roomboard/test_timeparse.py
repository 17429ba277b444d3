from datetime import date, time, timedelta

import pytest

from roomboard.timeparse import TIME_FORMATS, parse_clock, parse_time


DAY = date(2026, 10, 19)


@pytest.mark.parametrize("text,expected", [
    ("9:00am", time(9, 0)),
    ("09:00am", time(9, 0)),
    ("4:30 pm", time(16, 30)),
    ("4:30 PM", time(16, 30)),
    ("12:00am", time(0, 0)),
    ("12:00pm", time(12, 0)),
    ("16:00", time(16, 0)),
    ("7:30", time(7, 30)),
    ("08:00", time(8, 0)),
    ("12 am", time(0, 0)),
    ("9pm", time(21, 0)),
    ("  10:15am ", time(10, 15)),
])
def test_parse_clock_accepts_known_shapes(text, expected):
    assert parse_clock(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "noonish", "25:00", "13:00pm", None, 900])
def test_parse_clock_rejects_garbage(text):
    assert parse_clock(text) is None


def test_formats_are_tried_richest_first():
    assert TIME_FORMATS[0] == "%I:%M%p"
    assert TIME_FORMATS.index("%H:%M") > TIME_FORMATS.index("%I:%M %p")
    assert TIME_FORMATS.index("%I %p") > TIME_FORMATS.index("%H:%M")


def test_parse_time_anchors_to_date_and_timezone(tz):
    parsed = parse_time(DAY, "4:30pm", tz)

    assert parsed.date() == DAY
    assert (parsed.hour, parsed.minute) == (16, 30)
    assert parsed.tzinfo.zone == "America/New_York"
    assert parsed.utcoffset() == timedelta(hours=-4)  # EDT


def test_parse_time_signals_failure_without_raising(tz):
    assert parse_time(DAY, "whenever", tz) is None

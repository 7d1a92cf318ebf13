import pytest

from collegedesk.core.time_model import (
    DAYS_OF_WEEK,
    DayOfWeek,
    TimeInterval,
    format_minutes,
    intervals_overlap,
    normalize_time,
    parse_time_to_minutes,
)


def test_days_follow_display_order():
    assert DAYS_OF_WEEK[0] == DayOfWeek.MONDAY
    assert DAYS_OF_WEEK[-1] == DayOfWeek.SATURDAY
    assert len(DAYS_OF_WEEK) == 6
    assert DayOfWeek.WEDNESDAY.label == "Wednesday"


def test_parse_and_format_minutes():
    assert parse_time_to_minutes("00:00") == 0
    assert parse_time_to_minutes("13:45") == 13 * 60 + 45
    assert format_minutes(9 * 60 + 5) == "09:05"
    with pytest.raises(ValueError):
        parse_time_to_minutes("24:00")
    with pytest.raises(ValueError):
        parse_time_to_minutes("9:00")
    with pytest.raises(ValueError):
        format_minutes(24 * 60)


def test_normalize_time_pads_single_digit_hours():
    assert normalize_time("9:30") == "09:30"
    assert normalize_time(" 14:00 ") == "14:00"
    with pytest.raises(ValueError):
        normalize_time("9.30")


def test_interval_rejects_empty_or_reversed_ranges():
    with pytest.raises(ValueError):
        TimeInterval("10:00", "10:00")
    with pytest.raises(ValueError):
        TimeInterval("11:00", "10:00")
    assert TimeInterval("09:00", "10:30").minutes == 90


def test_overlap_is_half_open():
    morning = TimeInterval("09:00", "10:00")
    assert not morning.overlaps(TimeInterval("10:00", "11:00"))
    assert morning.overlaps(TimeInterval("09:30", "10:30"))
    assert TimeInterval("09:00", "11:00").contains(morning)
    assert not morning.contains(TimeInterval("09:00", "11:00"))

    assert intervals_overlap("09:00", "10:00", "09:59", "11:00")
    assert not intervals_overlap("09:00", "10:00", "10:00", "11:00")
    assert not intervals_overlap("10:00", "11:00", "09:00", "10:00")


def test_padded_strings_sort_chronologically():
    values = ["13:00", "09:00", "10:30", "08:15"]
    assert sorted(values) == sorted(values, key=parse_time_to_minutes)

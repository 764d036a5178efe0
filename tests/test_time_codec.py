import pytest

from fieldroute.services.routing.time_codec import (
    FALLBACK_TIME_24,
    add_minutes,
    format_minutes,
    is_valid_24_hour,
    minutes_from_12_hour,
    to_12_hour,
    to_24_hour,
)


@pytest.mark.parametrize(
    ("time24", "expected"),
    [
        ("00:15", "12:15 AM"),
        ("09:30", "09:30 AM"),
        ("12:00", "12:00 PM"),
        ("13:05", "01:05 PM"),
        ("23:59", "11:59 PM"),
    ],
)
def test_to_12_hour(time24: str, expected: str) -> None:
    assert to_12_hour(time24) == expected


@pytest.mark.parametrize(
    ("time12", "expected"),
    [
        ("12:15 AM", "00:15"),
        ("09:30 AM", "09:30"),
        ("12:00 PM", "12:00"),
        ("01:05 PM", "13:05"),
        ("2:45 pm", "14:45"),
        ("14:00", "14:00"),
    ],
)
def test_to_24_hour(time12: str, expected: str) -> None:
    assert to_24_hour(time12) == expected


@pytest.mark.parametrize("garbage", ["", "noon", "13:00 PM", "10:75 AM", "ten o'clock", None])
def test_to_24_hour_degrades_to_fallback(garbage) -> None:
    assert to_24_hour(garbage) == FALLBACK_TIME_24 == "09:00"


def test_add_minutes_wraps_both_directions() -> None:
    assert add_minutes("09:00", 90) == "10:30"
    assert add_minutes("23:30", 45) == "00:15"
    assert add_minutes("00:10", -30) == "23:40"
    assert add_minutes("09:00", 1440) == "09:00"
    assert add_minutes("09:00", -1440 * 2 - 60) == "08:00"


def test_minutes_helpers() -> None:
    assert minutes_from_12_hour("12:30 PM") == 750
    assert minutes_from_12_hour("01:00 PM") == 780
    assert minutes_from_12_hour("not a time") == 540
    assert format_minutes(1441) == "00:01"
    assert is_valid_24_hour("07:05")
    assert not is_valid_24_hour("24:00")
    assert not is_valid_24_hour("7 PM")


def test_round_trip_through_display_format() -> None:
    for minutes in range(0, 1440, 17):
        time24 = format_minutes(minutes)
        assert to_24_hour(to_12_hour(time24)) == time24

import pytest

from scoreboard.clock import ClockOffset, cap, elapsed_now, format_timer, parse_timer


@pytest.mark.parametrize("minutes,seconds", [(0, 0), (0, 59), (1, 5), (45, 0), (90, 30), (123, 7)])
def test_format_parse_round_trip(minutes, seconds):
    total = minutes * 60 + seconds
    assert parse_timer(format_timer(total)) == total


def test_format_pads_and_allows_long_matches():
    assert format_timer(0) == "00:00"
    assert format_timer(65) == "01:05"
    assert format_timer(100 * 60 + 1) == "100:01"


@pytest.mark.parametrize(
    "text",
    ["", "12", "1:2:3", "aa:10", "10:bb", "-1:10", "10:-1", "10:60", "10:99", " 1:00", "1:00 ", "1.5:00", "١:٠٠", None, 42],
)
def test_parse_malformed_reads_as_zero(text):
    assert parse_timer(text) == 0


def test_cap_per_half():
    assert cap(1, 45) == 2700
    assert cap(2, 45) == 5400
    assert cap(3, 45) == 5400
    assert cap(0, 45) == 2700


@pytest.mark.parametrize("half_length", [0, -5])
def test_cap_non_positive_half_length_is_zero(half_length):
    assert cap(1, half_length) == 0
    assert cap(2, half_length) == 0


def test_elapsed_stopped_returns_checkpoint():
    offset = ClockOffset(elapsed_seconds=125)
    assert elapsed_now(offset, now=5000.0) == 125


def test_elapsed_running_is_derived_and_truncated():
    offset = ClockOffset()
    offset.start_at(now=1000.0, elapsed=30)
    assert offset.running
    assert elapsed_now(offset, now=1000.0) == 30
    assert elapsed_now(offset, now=1012.9) == 42


def test_elapsed_never_negative():
    offset = ClockOffset(start_instant=2000.0)
    assert elapsed_now(offset, now=1990.0) == 0

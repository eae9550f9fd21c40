"""Unit tests for the objection window interval."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from land_registry.domain.errors import WindowClosedError
from land_registry.domain.models.objection_window import ObjectionWindow

START = datetime(2026, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def window() -> ObjectionWindow:
    return ObjectionWindow.opening_at(START, 30)


class TestObjectionWindow:
    def test_opening_at(self, window: ObjectionWindow) -> None:
        assert window.window_start == START
        assert window.window_end == datetime(2026, 3, 31, tzinfo=timezone.utc)

    def test_end_before_start_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            ObjectionWindow(START, START - timedelta(seconds=1))

    def test_zero_length_window_is_allowed(self) -> None:
        window = ObjectionWindow(START, START)

        assert window.contains(START)

    def test_both_endpoints_are_inclusive(self, window: ObjectionWindow) -> None:
        assert window.contains(window.window_start)
        assert window.contains(window.window_end)
        assert not window.contains(window.window_start - timedelta(microseconds=1))
        assert not window.contains(window.window_end + timedelta(microseconds=1))

    def test_has_closed_only_after_end(self, window: ObjectionWindow) -> None:
        assert not window.has_closed(window.window_end)
        assert window.has_closed(window.window_end + timedelta(seconds=1))
        assert not window.has_closed(START - timedelta(days=1))


class TestDaysRemaining:
    @pytest.mark.parametrize(
        ("offset", "expected"),
        [
            (timedelta(0), 30),
            (timedelta(days=29, hours=1), 1),
            (timedelta(days=29, hours=23, minutes=59), 1),
            (timedelta(days=30), 0),
            (timedelta(days=30, seconds=1), -1),
            (timedelta(days=32, hours=12), -3),
        ],
    )
    def test_rounding(
        self, window: ObjectionWindow, offset: timedelta, expected: int
    ) -> None:
        assert window.days_remaining(START + offset) == expected


class TestWindowClosedError:
    def test_closed_message(self, window: ObjectionWindow) -> None:
        error = WindowClosedError("scheme-1", -2, window.window_start, window.window_end)

        assert error.error_code == "WINDOW_CLOSED"
        assert "closed at" in str(error)
        assert "(2 day(s) ago)" in str(error)

    def test_not_yet_open_message(self, window: ObjectionWindow) -> None:
        error = WindowClosedError(
            "scheme-1", 31, window.window_start, window.window_end, not_yet_open=True
        )

        assert error.not_yet_open
        assert str(error).startswith("Objection window for plan scheme-1 opens at")

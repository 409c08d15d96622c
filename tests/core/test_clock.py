"""Tests for the preview frame clock."""

import pytest

from contourrig.core.clock import FrameClock


class FakeTime:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_delta_and_elapsed():
    t = FakeTime()
    clock = FrameClock(time_source=t)
    t.now = 0.016
    assert clock.get_delta() == pytest.approx(0.016)
    t.now = 0.032
    assert clock.get_delta() == pytest.approx(0.016)
    assert clock.elapsed == pytest.approx(0.032)


def test_delta_is_clamped():
    t = FakeTime()
    clock = FrameClock(time_source=t, max_delta=0.1)
    t.now = 5.0
    assert clock.get_delta() == pytest.approx(0.1)


def test_reset():
    t = FakeTime()
    clock = FrameClock(time_source=t)
    t.now = 0.05
    clock.get_delta()
    clock.reset()
    assert clock.elapsed == 0.0
    t.now = 0.06
    assert clock.get_delta() == pytest.approx(0.01)

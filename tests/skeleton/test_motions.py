"""Tests for the built-in motion clips."""

import pytest

from contourrig.skeleton.motions import (
    MotionType, available_motions, clip_view, get_motion_clip, sample_clip, sample_motion,
)
from contourrig.skeleton.poses import AngleView, get_rest_pose


def test_clip_view_mapping():
    assert clip_view(AngleView.SIDE) is AngleView.SIDE
    assert clip_view(AngleView.FRONT45) is AngleView.FRONT
    assert clip_view("back") is AngleView.FRONT


def test_available_motions():
    assert available_motions("front") == [
        MotionType.WALK, MotionType.JUMP, MotionType.WAVE, MotionType.MJ_DANCE,
    ]
    assert available_motions(AngleView.SIDE) == [
        MotionType.WALK, MotionType.JUMP, MotionType.WAVE, MotionType.MJ_DANCE, MotionType.RUN,
    ]


@pytest.mark.parametrize("view", ["front45", "back"])
def test_run_is_side_only(view):
    assert MotionType.RUN not in available_motions(view)
    # The front clip exists but is not offered
    assert get_motion_clip(AngleView.FRONT, MotionType.RUN) is not None


@pytest.mark.parametrize("view", [AngleView.FRONT, AngleView.SIDE])
@pytest.mark.parametrize("motion", list(MotionType))
def test_every_clip_loops_from_rest(view, motion):
    clip = get_motion_clip(view, motion)
    rest = get_rest_pose(view)
    assert clip.base_view is view
    assert len(clip.keyframes) >= 3
    assert dict(clip.keyframes[0].pose) == rest
    assert dict(clip.keyframes[-1].pose) == rest
    assert set(dict(clip.keyframes[1].pose)) == set(rest)


def test_clip_durations():
    assert get_motion_clip(AngleView.FRONT, MotionType.JUMP).duration == pytest.approx(0.65)
    assert get_motion_clip(AngleView.SIDE, MotionType.MJ_DANCE).duration == pytest.approx(1.2)
    assert get_motion_clip(AngleView.SIDE, MotionType.RUN).duration == pytest.approx(1.0)


def test_jump_crouches_then_lifts():
    clip = get_motion_clip(AngleView.FRONT, MotionType.JUMP)
    crouch = dict(clip.keyframes[1].pose)
    peak = dict(clip.keyframes[3].pose)
    assert peak["heel_l"][1] < crouch["heel_l"][1]
    assert peak["shoulder_r"][1] < crouch["shoulder_r"][1]


def test_run_swaps_legs_each_half_stride():
    clip = get_motion_clip(AngleView.SIDE, MotionType.RUN)
    first, third = dict(clip.keyframes[1].pose), dict(clip.keyframes[3].pose)
    assert first["knee_l"] == third["knee_r"]
    assert first["knee_r"] == third["knee_l"]


def test_clip_starts_and_ends_at_rest():
    clip = get_motion_clip(AngleView.FRONT, MotionType.WALK)
    rest = get_rest_pose(AngleView.FRONT)
    assert clip.duration == pytest.approx(1.0)
    assert dict(clip.keyframes[0].pose) == rest
    assert dict(clip.keyframes[-1].pose) == rest


def test_sample_interpolates_between_keyframes():
    clip = get_motion_clip(AngleView.FRONT, MotionType.WAVE)
    rest = get_rest_pose(AngleView.FRONT)
    k1 = dict(clip.keyframes[1].pose)
    half = sample_clip(clip, clip.keyframes[1].time / 2)
    expected = (rest["elbow_r"][1] + k1["elbow_r"][1]) / 2
    assert half["elbow_r"][1] == pytest.approx(expected)
    # Untouched bones stay at rest
    assert half["toe_l"] == pytest.approx(rest["toe_l"])


def test_sample_loops():
    a = sample_motion("front", "walk", 0.3)
    b = sample_motion("front", "walk", 1.3)
    for bone in a:
        assert a[bone] == pytest.approx(b[bone])

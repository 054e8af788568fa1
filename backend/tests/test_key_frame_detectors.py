"""
Tests for per-exercise key frame detection on synthetic FeatureFrame series.
"""

import numpy as np
import pytest

from liftcheck.cv.exercises import Exercise, KeyFrameRole, RejectionReason, create_detector
from tests.factories import FPS, deadlift_frame, press_frame, row_frame, squat_frame


def squat_series(trough=0.7, knee_y=0.7):
    """40 frames, hip 0.3 -> trough -> 0.3, knee bending with depth."""
    hip_y = np.concatenate([np.linspace(0.3, trough, 20), np.linspace(trough, 0.3, 20)])
    knee = 160.0 - (hip_y - 0.3) / (trough - 0.3) * 70.0
    return [squat_frame(i, y, k, knee_y) for i, (y, k) in enumerate(zip(hip_y, knee))]


def indices(repetition):
    return {kf.role: kf.frame_index for kf in repetition.key_frames}


# =============================================================================
# Squat
# =============================================================================

class TestSquatKeyFrameDetector:

    def test_descent_and_ascent(self):
        repetition = create_detector("squat").detect(squat_series())

        assert repetition is not None
        assert repetition.roles == ["inicio", "peak"]
        found = indices(repetition)
        assert found[KeyFrameRole.PEAK] == 19  # first frame at the trough
        assert found[KeyFrameRole.INICIO] == 0
        assert repetition.amplitude == pytest.approx(0.4)
        assert repetition.duration == pytest.approx(19 / FPS, abs=1e-3)
        assert repetition.metrics["broke_parallel"] is True
        assert repetition.metrics["min_knee_angle"] == pytest.approx(90.0)

    def test_above_parallel(self):
        repetition = create_detector("squat").detect(squat_series(trough=0.6, knee_y=0.7))
        assert repetition.metrics["broke_parallel"] is False

    def test_within_tolerance_counts_as_parallel(self):
        repetition = create_detector("squat").detect(squat_series(trough=0.69, knee_y=0.7))
        assert repetition.metrics["broke_parallel"] is True

    def test_ignores_frames_outside_knee_range(self):
        frames = squat_series()
        # Straight-legged frame with the highest hip in the video
        frames[30] = squat_frame(30, 0.2, knee_angle=178.0)
        repetition = create_detector("squat").detect(frames)
        assert indices(repetition)[KeyFrameRole.INICIO] == 0

    def test_no_frame_in_knee_range(self):
        frames = [squat_frame(i, 0.3 + i * 0.01, knee_angle=175.0) for i in range(20)]
        detector = create_detector("squat")
        assert detector.detect(frames) is None
        assert detector.rejection_reason == RejectionReason.NO_KNEE_BEND

    def test_too_few_frames(self):
        assert create_detector("squat").detect(squat_series()[:9]) is None


# =============================================================================
# Deadlift
# =============================================================================

DEADLIFT_HIP = [0.5, 0.55, 0.58, 0.62, 0.6, 0.56, 0.52, 0.48, 0.45, 0.44, 0.44, 0.45]
DEADLIFT_SHOULDER = [0.45, 0.5, 0.52, 0.55, 0.52, 0.48, 0.42, 0.36, 0.31, 0.30, 0.30, 0.32]


class TestDeadliftKeyFrameDetector:

    def test_start_and_lockout(self):
        frames = [
            deadlift_frame(i, h, s, torso_angle=25.0)
            for i, (h, s) in enumerate(zip(DEADLIFT_HIP, DEADLIFT_SHOULDER))
        ]
        repetition = create_detector("deadlift").detect(frames)

        assert repetition.roles == ["inicio", "lockout"]
        found = indices(repetition)
        assert found[KeyFrameRole.INICIO] == 3
        assert found[KeyFrameRole.LOCKOUT] == 9  # first of the tied minimum
        assert repetition.amplitude == pytest.approx(0.25)
        assert repetition.metrics["hip_travel"] == pytest.approx(0.18)
        assert repetition.metrics["shoulder_travel"] == pytest.approx(0.25)

        flags = repetition.safety_flags
        assert flags.shoulder_below_hip is False
        assert flags.torso_angle_negative is False
        assert flags.torso_near_horizontal is False
        assert flags.torso_angle == 25.0

    def test_flat_back_flagged(self):
        frames = [
            deadlift_frame(i, h, s, torso_angle=12.0)
            for i, (h, s) in enumerate(zip(DEADLIFT_HIP, DEADLIFT_SHOULDER))
        ]
        flags = create_detector("deadlift").detect(frames).safety_flags
        assert flags.torso_near_horizontal is True
        assert flags.torso_angle_negative is False

    def test_inverted_torso_flagged(self):
        shoulder = list(DEADLIFT_SHOULDER)
        shoulder[3] = 0.66  # below the hip at the start
        frames = [
            deadlift_frame(i, h, s, torso_angle=-8.0 if i == 3 else 30.0)
            for i, (h, s) in enumerate(zip(DEADLIFT_HIP, shoulder))
        ]
        flags = create_detector("deadlift").detect(frames).safety_flags
        assert flags.shoulder_below_hip is True
        assert flags.torso_angle_negative is True
        assert flags.torso_near_horizontal is False

    def test_fewer_than_ten_frames(self):
        frames = [
            deadlift_frame(i, h, s)
            for i, (h, s) in enumerate(zip(DEADLIFT_HIP[:9], DEADLIFT_SHOULDER[:9]))
        ]
        assert create_detector("deadlift").detect(frames) is None

    def test_small_travel_rejected(self):
        shoulder = np.linspace(0.40, 0.39, 10)
        frames = [deadlift_frame(i, 0.5, float(s)) for i, s in enumerate(shoulder)]
        assert create_detector("deadlift").detect(frames) is None

    def test_start_at_last_frame(self):
        frames = [deadlift_frame(i, 0.4 + i * 0.01, 0.3) for i in range(12)]
        assert create_detector("deadlift").detect(frames) is None

    def test_shoulders_sinking_after_start_rejected(self):
        # Hip barely rises while the shoulders drop: no pull happened
        frames = [deadlift_frame(0, 0.60, 0.30)]
        frames += [deadlift_frame(i, 0.59, 0.35) for i in range(1, 12)]
        detector = create_detector("deadlift")

        assert detector.detect(frames) is None
        assert detector.rejection_reason == RejectionReason.INSUFFICIENT_TRAVEL

    def test_travel_counts_upward_movement_only(self):
        # Hip rises 0.03 while the shoulders sink 0.05
        frames = [deadlift_frame(0, 0.60, 0.30)]
        frames += [deadlift_frame(i, 0.57, 0.35) for i in range(1, 12)]
        repetition = create_detector("deadlift").detect(frames)

        assert repetition.amplitude == pytest.approx(0.03)
        assert repetition.metrics["hip_travel"] == pytest.approx(0.03)
        assert repetition.metrics["shoulder_travel"] == pytest.approx(-0.05)


# =============================================================================
# Overhead press
# =============================================================================

PRESS_WRIST = [0.5, 0.6, 0.55, 0.4, 0.3, 0.1, 0.2, 0.3, 0.45, 0.58]


class TestPressKeyFrameDetector:

    def test_lockout_then_start_before_it(self):
        frames = [press_frame(i, y) for i, y in enumerate(PRESS_WRIST)]
        repetition = create_detector("overhead_press").detect(frames)

        assert repetition.roles == ["inicio", "lockout"]
        found = indices(repetition)
        assert found[KeyFrameRole.LOCKOUT] == 5
        assert found[KeyFrameRole.INICIO] == 1
        assert repetition.amplitude == pytest.approx(0.5)
        assert repetition.duration == pytest.approx(4 / FPS, abs=1e-3)

    def test_press_metrics(self):
        frames = [
            press_frame(i, y, wrist_x=0.55 if i == 5 else 0.5, torso_angle=84.0 if i == 5 else 88.0)
            for i, y in enumerate(PRESS_WRIST)
        ]
        repetition = create_detector("overhead_press").detect(frames)
        assert repetition.metrics["wrist_x_deviation"] == pytest.approx(0.05)
        assert repetition.metrics["torso_change"] == pytest.approx(-4.0)

    def test_lockout_at_first_frame(self):
        frames = [press_frame(i, 0.1 + i * 0.05) for i in range(10)]
        detector = create_detector("overhead_press")
        assert detector.detect(frames) is None
        assert detector.rejection_reason == RejectionReason.NO_FRAMES_BEFORE_LOCKOUT


# =============================================================================
# Bent-over row
# =============================================================================

ROW_WRIST = [0.5, 0.55, 0.7, 0.6, 0.5, 0.45, 0.42, 0.4, 0.38, 0.3, 0.33]


class TestRowKeyFrameDetector:

    def test_start_then_peak_after_it(self):
        frames = [row_frame(i, y) for i, y in enumerate(ROW_WRIST)]
        repetition = create_detector("bent_row").detect(frames)

        assert repetition.roles == ["inicio", "peak"]
        found = indices(repetition)
        assert found[KeyFrameRole.INICIO] == 2
        assert found[KeyFrameRole.PEAK] == 9
        assert repetition.amplitude == pytest.approx(0.4)
        assert repetition.metrics["wrist_travel"] == pytest.approx(0.4)

    def test_start_at_last_frame(self):
        frames = [row_frame(i, 0.3 + i * 0.02) for i in range(10)]
        detector = create_detector("bent_row")
        assert detector.detect(frames) is None
        assert detector.rejection_reason == RejectionReason.NO_FRAMES_AFTER_START


# =============================================================================
# Shared properties
# =============================================================================

def series_for(exercise):
    if exercise == Exercise.SQUAT:
        return squat_series()
    if exercise == Exercise.DEADLIFT:
        return [deadlift_frame(i, h, s) for i, (h, s) in enumerate(zip(DEADLIFT_HIP, DEADLIFT_SHOULDER))]
    if exercise == Exercise.OVERHEAD_PRESS:
        return [press_frame(i, y) for i, y in enumerate(PRESS_WRIST)]
    return [row_frame(i, y) for i, y in enumerate(ROW_WRIST)]


class TestDetectorProperties:

    @pytest.mark.parametrize("exercise", list(Exercise))
    def test_idempotent(self, exercise):
        frames = series_for(exercise)
        detector = create_detector(exercise)

        first = detector.detect(frames)
        second = detector.detect(frames)
        third = create_detector(exercise).detect(list(frames))

        assert indices(first) == indices(second) == indices(third)
        assert first.amplitude == second.amplitude == third.amplitude

    @pytest.mark.parametrize("exercise", list(Exercise))
    def test_key_frames_in_time_order(self, exercise):
        repetition = create_detector(exercise).detect(series_for(exercise))
        start, end = repetition.key_frames
        assert start.timestamp <= end.timestamp
        assert repetition.exercise == exercise

    @pytest.mark.parametrize("exercise", list(Exercise))
    def test_empty_series(self, exercise):
        assert create_detector(exercise).detect([]) is None

    def test_repetition_serializes(self):
        repetition = create_detector("deadlift").detect(series_for(Exercise.DEADLIFT))
        data = repetition.to_dict()
        assert data["exercise"] == "deadlift"
        assert [kf["role"] for kf in data["key_frames"]] == ["inicio", "lockout"]
        assert data["safety_flags"]["torso_angle"] == 30.0

    def test_key_frame_lookup(self):
        repetition = create_detector("overhead_press").detect(series_for(Exercise.OVERHEAD_PRESS))
        assert repetition.key_frame(KeyFrameRole.LOCKOUT).frame_index == 5
        assert repetition.key_frame(KeyFrameRole.PEAK) is None

    @pytest.mark.parametrize("exercise", list(Exercise))
    def test_short_series_reason(self, exercise):
        detector = create_detector(exercise)
        assert detector.detect(series_for(exercise)[:5]) is None
        assert detector.rejection_reason == RejectionReason.TOO_FEW_FRAMES

    @pytest.mark.parametrize("exercise", list(Exercise))
    def test_reason_cleared_by_next_detection(self, exercise):
        detector = create_detector(exercise)
        detector.detect([])
        assert detector.detect(series_for(exercise)) is not None
        assert detector.rejection_reason is None

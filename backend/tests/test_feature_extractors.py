"""
Tests for per-exercise frame feature extraction.
"""

import numpy as np
import pytest

from liftcheck.cv.exercises import (
    DeadliftFrame,
    Exercise,
    PressFrame,
    RowFrame,
    SquatFrame,
    create_extractor,
)
from liftcheck.cv.landmarks import Landmark, MediaPipeLandmark as LM, RawFrame
from liftcheck.cv.side_selection import VisibilitySideSelector
from tests.factories import make_landmarks


def raw(landmarks, timestamp=0.0, sample_index=0):
    return RawFrame(timestamp=timestamp, sample_index=sample_index, landmarks=landmarks)


def random_landmarks(rng):
    """Arbitrary landmark set: every point uniform in the image."""
    return [
        Landmark(x=float(x), y=float(y), z=float(z))
        for x, y, z in rng.uniform(0, 1, size=(33, 3))
    ]


# =============================================================================
# Shared behaviour
# =============================================================================

class TestExtractorCommon:

    @pytest.mark.parametrize("exercise", Exercise.all())
    def test_incomplete_landmarks_rejected(self, exercise, standing_landmarks):
        extractor = create_extractor(exercise)
        assert extractor.extract(raw(standing_landmarks[:25]), frame_index=0) is None

    @pytest.mark.parametrize("exercise", Exercise.all())
    def test_standing_pose_accepted(self, exercise, standing_landmarks):
        frame = create_extractor(exercise).extract(raw(standing_landmarks, 1.5), frame_index=4)
        assert frame is not None
        assert frame.frame_index == 4
        assert frame.timestamp == 1.5
        assert frame.side == "right"

    @pytest.mark.parametrize("exercise", Exercise.all())
    def test_emitted_frames_respect_windows(self, exercise):
        extractor = create_extractor(exercise)
        rng = np.random.RandomState(42)

        emitted = []
        for i in range(300):
            frame = extractor.extract(raw(random_landmarks(rng), i / 30.0, i), frame_index=i)
            if frame is not None:
                emitted.append(frame)

        assert 0 < len(emitted) < 300
        for frame in emitted:
            for name, (low, high) in extractor.validity_windows.items():
                assert low <= getattr(frame, name) <= high

    def test_side_selector_is_pluggable(self):
        landmarks = make_landmarks(
            left={"knee": (0.6, 0.7)},
            visibility={LM.RIGHT_HIP: 0.1, LM.RIGHT_KNEE: 0.1},
        )
        extractor = create_extractor(Exercise.SQUAT, side_selector=VisibilitySideSelector())
        frame = extractor.extract(raw(landmarks), frame_index=0)
        assert frame.side == "left"


# =============================================================================
# Squat
# =============================================================================

class TestSquatFeatureExtractor:

    def test_standing_values(self, standing_landmarks):
        frame = create_extractor("squat").extract(raw(standing_landmarks), frame_index=0)
        assert isinstance(frame, SquatFrame)
        assert frame.knee_angle == 180.0
        assert frame.alignment_angle == 180.0
        assert frame.torso_angle == 90.0
        assert frame.relative_height == pytest.approx(-0.2)
        assert frame.hip_y == 0.5
        assert frame.knee_y == 0.7

    def test_reads_selected_side_only(self):
        # Left chain has smaller hip/knee depth spread and a bent knee
        landmarks = make_landmarks(
            left={"knee": (0.6, 0.7)},
            depth={LM.RIGHT_HIP: 0.0, LM.RIGHT_KNEE: 0.3},
        )
        frame = create_extractor("squat").extract(raw(landmarks), frame_index=0)
        assert frame.side == "left"
        assert frame.knee_angle == pytest.approx(126.9, abs=0.05)

    def test_collapsed_knee_rejected(self):
        landmarks = make_landmarks({
            "knee": (0.7, 0.55),
            "ankle": (0.52, 0.52),
        })
        assert create_extractor("squat").extract(raw(landmarks), frame_index=0) is None


# =============================================================================
# Deadlift
# =============================================================================

class TestDeadliftFeatureExtractor:

    def test_standing_values(self, standing_landmarks):
        frame = create_extractor("deadlift").extract(raw(standing_landmarks), frame_index=0)
        assert isinstance(frame, DeadliftFrame)
        assert frame.knee_angle == 180.0
        assert frame.hip_angle == 180.0
        assert frame.torso_angle == 90.0

    def test_hinged_torso_positive(self):
        landmarks = make_landmarks({"shoulder": (0.7, 0.45)})
        frame = create_extractor("deadlift").extract(raw(landmarks), frame_index=0)
        assert frame.torso_angle == pytest.approx(14.0, abs=0.05)

    def test_shoulder_below_hip_negative(self):
        landmarks = make_landmarks({"shoulder": (0.7, 0.55)})
        frame = create_extractor("deadlift").extract(raw(landmarks), frame_index=0)
        assert frame.torso_angle == pytest.approx(-14.0, abs=0.05)
        assert frame.shoulder_y > frame.hip_y


# =============================================================================
# Overhead press
# =============================================================================

class TestPressFeatureExtractor:

    def test_arm_values(self):
        landmarks = make_landmarks({
            "elbow": (0.6, 0.3),
            "wrist": (0.6, 0.15),
        })
        frame = create_extractor("overhead_press").extract(raw(landmarks), frame_index=0)
        assert isinstance(frame, PressFrame)
        assert frame.elbow_angle == 90.0
        assert frame.wrist_y == 0.15
        assert frame.wrist_x == 0.6
        assert frame.torso_angle == 90.0

    def test_folded_elbow_rejected(self):
        landmarks = make_landmarks({
            "elbow": (0.55, 0.4),
            "wrist": (0.5, 0.3),
        })
        assert create_extractor("overhead_press").extract(raw(landmarks), frame_index=0) is None

    def test_side_from_arm_joints(self):
        landmarks = make_landmarks(depth={
            LM.LEFT_ELBOW: 0.0, LM.LEFT_WRIST: 0.02,
            LM.RIGHT_ELBOW: 0.0, LM.RIGHT_WRIST: 0.2,
        })
        frame = create_extractor("overhead_press").extract(raw(landmarks), frame_index=0)
        assert frame.side == "left"


# =============================================================================
# Bent-over row
# =============================================================================

class TestRowFeatureExtractor:

    def test_hinge_values(self):
        landmarks = make_landmarks({
            "shoulder": (0.7, 0.45),
            "elbow": (0.7, 0.55),
            "wrist": (0.7, 0.65),
        })
        frame = create_extractor("bent_row").extract(raw(landmarks), frame_index=2)
        assert isinstance(frame, RowFrame)
        assert frame.elbow_angle == 180.0
        assert frame.torso_angle == pytest.approx(14.0, abs=0.05)
        assert frame.wrist_y == 0.65
        assert frame.frame_index == 2

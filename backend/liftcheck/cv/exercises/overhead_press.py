"""
Overhead press: from the rack position to full overhead lockout.

Unlike the other lifts the search runs backwards: lockout (highest wrist
in the whole video) is located first, then the start position is the
lowest wrist before it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from liftcheck.cv.exercises.base import (
    Exercise,
    FeatureFrame,
    FrameFeatureExtractor,
    KeyFrameDetector,
    KeyFrameRole,
    RejectionReason,
    Repetition,
    index_of_max,
    index_of_min,
)
from liftcheck.cv.geometry import angle_at, torso_inclination
from liftcheck.cv.landmarks import LimbChain

logger = logging.getLogger(__name__)


@dataclass
class PressFrame(FeatureFrame):
    elbow_angle: float
    torso_angle: float
    alignment_angle: float  # ankle-hip-shoulder
    wrist_y: float
    elbow_y: float
    shoulder_y: float
    hip_y: float
    ankle_y: float
    wrist_x: float


class PressFeatureExtractor(FrameFeatureExtractor):
    """Elbow extension with torso lean and whole-body alignment."""

    exercise = Exercise.OVERHEAD_PRESS
    reference_joints = ("elbow", "wrist")
    validity_windows = {
        "elbow_angle": (30.0, 180.0),
    }

    TORSO_VERTICAL_READING = 90

    def compute(self, chain: LimbChain, timestamp: float, frame_index: int) -> PressFrame:
        return PressFrame(
            timestamp=timestamp,
            frame_index=frame_index,
            side=chain.side,
            elbow_angle=angle_at(chain.shoulder, chain.elbow, chain.wrist),
            # Measured hip->shoulder; the unsigned reading is order independent
            torso_angle=torso_inclination(
                chain.hip, chain.shoulder,
                signed=False,
                vertical_reading=self.TORSO_VERTICAL_READING,
            ),
            alignment_angle=angle_at(chain.ankle, chain.hip, chain.shoulder),
            wrist_y=chain.wrist.y,
            elbow_y=chain.elbow.y,
            shoulder_y=chain.shoulder.y,
            hip_y=chain.hip.y,
            ankle_y=chain.ankle.y,
            wrist_x=chain.wrist.x,
        )


class PressKeyFrameDetector(KeyFrameDetector):
    """Highest wrist overall, then lowest wrist before it."""

    exercise = Exercise.OVERHEAD_PRESS
    roles = (KeyFrameRole.INICIO, KeyFrameRole.LOCKOUT)

    def search(self, frames: List[FeatureFrame]) -> Optional[Repetition]:
        lockout_pos = index_of_min(frames, lambda f: f.wrist_y)
        lockout = frames[lockout_pos]

        before = frames[:lockout_pos]
        if not before:
            logger.info("Press lockout is the first frame, no start position to search")
            return self.reject(RejectionReason.NO_FRAMES_BEFORE_LOCKOUT)

        start = before[index_of_max(before, lambda f: f.wrist_y)]

        logger.info(
            f"Press: inicio={start.frame_index} ({start.timestamp:.2f}s), "
            f"lockout={lockout.frame_index} ({lockout.timestamp:.2f}s), "
            f"elbow at lockout={lockout.elbow_angle:.1f}"
        )

        return self.build(
            start,
            lockout,
            start.wrist_y - lockout.wrist_y,
            metrics={
                "wrist_x_deviation": round(abs(start.wrist_x - lockout.wrist_x), 4),
                "torso_change": round(lockout.torso_angle - start.torso_angle, 1),
            },
        )

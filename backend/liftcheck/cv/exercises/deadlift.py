"""
Deadlift: from the bottom of the pull to an upright lockout.

The start frame is the lowest hip position in the video; lockout is the
most upright shoulder position after it. The start frame also carries the
safety checks on back angle.
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
    SafetyFlags,
    index_of_max,
    index_of_min,
)
from liftcheck.cv.geometry import angle_at, torso_inclination
from liftcheck.cv.landmarks import LimbChain

logger = logging.getLogger(__name__)


@dataclass
class DeadliftFrame(FeatureFrame):
    knee_angle: float
    hip_angle: float
    alignment_angle: float  # ankle-hip-shoulder
    torso_angle: float  # Negative when the shoulder is below the hip
    hip_y: float
    shoulder_y: float
    knee_y: float
    ankle_y: float


class DeadliftFeatureExtractor(FrameFeatureExtractor):
    """Knee and hip hinge angles plus signed torso inclination."""

    exercise = Exercise.DEADLIFT
    reference_joints = ("hip", "knee")
    validity_windows = {
        "knee_angle": (20.0, 180.0),
        "hip_angle": (20.0, 180.0),
    }

    TORSO_VERTICAL_READING = 90

    def compute(self, chain: LimbChain, timestamp: float, frame_index: int) -> DeadliftFrame:
        return DeadliftFrame(
            timestamp=timestamp,
            frame_index=frame_index,
            side=chain.side,
            knee_angle=angle_at(chain.hip, chain.knee, chain.ankle),
            hip_angle=angle_at(chain.shoulder, chain.hip, chain.knee),
            alignment_angle=angle_at(chain.ankle, chain.hip, chain.shoulder),
            torso_angle=torso_inclination(
                chain.shoulder, chain.hip,
                signed=True,
                vertical_reading=self.TORSO_VERTICAL_READING,
            ),
            hip_y=chain.hip.y,
            shoulder_y=chain.shoulder.y,
            knee_y=chain.knee.y,
            ankle_y=chain.ankle.y,
        )


class DeadliftKeyFrameDetector(KeyFrameDetector):
    """Lowest hip, then highest shoulder after it."""

    exercise = Exercise.DEADLIFT
    roles = (KeyFrameRole.INICIO, KeyFrameRole.LOCKOUT)

    MIN_TRAVEL = 0.02  # Below this the bar never really left the floor
    NEAR_HORIZONTAL_DEGREES = 20.0

    def search(self, frames: List[FeatureFrame]) -> Optional[Repetition]:
        start_pos = index_of_max(frames, lambda f: f.hip_y)
        start = frames[start_pos]

        after = frames[start_pos + 1:]
        if not after:
            logger.info("Deadlift start is the last frame, no lockout to search")
            return self.reject(RejectionReason.NO_FRAMES_AFTER_START)

        lockout = after[index_of_min(after, lambda f: f.shoulder_y)]

        # Upward travel is positive; a joint that only sank does not count
        hip_travel = start.hip_y - lockout.hip_y
        shoulder_travel = start.shoulder_y - lockout.shoulder_y
        amplitude = max(hip_travel, shoulder_travel)

        if amplitude < self.MIN_TRAVEL:
            logger.info(
                f"Deadlift upward travel too small: hip={hip_travel:.4f}, "
                f"shoulder={shoulder_travel:.4f} (min {self.MIN_TRAVEL})"
            )
            return self.reject(RejectionReason.INSUFFICIENT_TRAVEL)

        flags = self.safety_flags(start)

        logger.info(
            f"Deadlift: inicio={start.frame_index} ({start.timestamp:.2f}s), "
            f"lockout={lockout.frame_index} ({lockout.timestamp:.2f}s), "
            f"torso at start={start.torso_angle:.1f}"
        )

        return self.build(
            start,
            lockout,
            amplitude,
            safety_flags=flags,
            metrics={
                "hip_travel": round(hip_travel, 4),
                "shoulder_travel": round(shoulder_travel, 4),
                "torso_angle_at_start": start.torso_angle,
            },
        )

    def safety_flags(self, start: DeadliftFrame) -> SafetyFlags:
        """Back-angle alerts at the start position."""
        return SafetyFlags(
            shoulder_below_hip=start.shoulder_y > start.hip_y,
            torso_angle_negative=start.torso_angle < 0,
            torso_near_horizontal=0 <= start.torso_angle < self.NEAR_HORIZONTAL_DEGREES,
            torso_angle=start.torso_angle,
        )

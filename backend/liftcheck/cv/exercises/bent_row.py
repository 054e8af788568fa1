"""
Bent-over row: arms hanging at the start, bar pulled to the torso at peak.
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
class RowFrame(FeatureFrame):
    elbow_angle: float
    torso_angle: float  # Negative when the shoulder is below the hip
    knee_angle: float
    alignment_angle: float  # knee-hip-shoulder
    wrist_y: float
    elbow_y: float
    shoulder_y: float
    hip_y: float


class RowFeatureExtractor(FrameFeatureExtractor):
    """Elbow flexion plus the hinge posture held during the set."""

    exercise = Exercise.BENT_ROW
    reference_joints = ("elbow", "wrist")
    validity_windows = {
        "elbow_angle": (30.0, 180.0),
    }

    TORSO_VERTICAL_READING = 90

    def compute(self, chain: LimbChain, timestamp: float, frame_index: int) -> RowFrame:
        return RowFrame(
            timestamp=timestamp,
            frame_index=frame_index,
            side=chain.side,
            elbow_angle=angle_at(chain.shoulder, chain.elbow, chain.wrist),
            torso_angle=torso_inclination(
                chain.shoulder, chain.hip,
                signed=True,
                vertical_reading=self.TORSO_VERTICAL_READING,
            ),
            knee_angle=angle_at(chain.hip, chain.knee, chain.ankle),
            alignment_angle=angle_at(chain.knee, chain.hip, chain.shoulder),
            wrist_y=chain.wrist.y,
            elbow_y=chain.elbow.y,
            shoulder_y=chain.shoulder.y,
            hip_y=chain.hip.y,
        )


class RowKeyFrameDetector(KeyFrameDetector):
    """Lowest wrist overall, then highest wrist after it."""

    exercise = Exercise.BENT_ROW
    roles = (KeyFrameRole.INICIO, KeyFrameRole.PEAK)

    def search(self, frames: List[FeatureFrame]) -> Optional[Repetition]:
        start_pos = index_of_max(frames, lambda f: f.wrist_y)
        start = frames[start_pos]

        after = frames[start_pos + 1:]
        if not after:
            logger.info("Row start is the last frame, no contraction to search")
            return self.reject(RejectionReason.NO_FRAMES_AFTER_START)

        peak = after[index_of_min(after, lambda f: f.wrist_y)]
        travel = start.wrist_y - peak.wrist_y

        logger.info(
            f"Row: inicio={start.frame_index} ({start.timestamp:.2f}s), "
            f"peak={peak.frame_index} ({peak.timestamp:.2f}s), travel={travel:.3f}"
        )

        return self.build(
            start,
            peak,
            travel,
            metrics={"wrist_travel": round(abs(travel), 4)},
        )

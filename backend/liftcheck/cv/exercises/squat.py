"""
Squat: hip-height trajectory between the standing and the bottom position.

The bottom ("peak") frame is where depth is judged: the squat breaks
parallel when the hip reaches knee height within a small tolerance.
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
from liftcheck.cv.geometry import angle_at, flexion_bearing_angle, torso_inclination
from liftcheck.cv.landmarks import LimbChain

logger = logging.getLogger(__name__)


@dataclass
class SquatFrame(FeatureFrame):
    knee_angle: float
    alignment_angle: float  # shoulder-hip-ankle, bearing based
    hip_flexion_angle: float  # shoulder-hip-knee, bearing based
    torso_angle: float
    relative_height: float  # hip.y - knee.y, >= 0 once the hip is below the knee
    hip_y: float
    knee_y: float


class SquatFeatureExtractor(FrameFeatureExtractor):
    """Knee, hip flexion and alignment angles from the hip/knee chain."""

    exercise = Exercise.SQUAT
    reference_joints = ("hip", "knee")
    validity_windows = {
        "knee_angle": (30.0, 180.0),
        "alignment_angle": (30.0, 180.0),
    }

    TORSO_VERTICAL_READING = 90

    def compute(self, chain: LimbChain, timestamp: float, frame_index: int) -> SquatFrame:
        return SquatFrame(
            timestamp=timestamp,
            frame_index=frame_index,
            side=chain.side,
            knee_angle=angle_at(chain.hip, chain.knee, chain.ankle),
            alignment_angle=flexion_bearing_angle(chain.shoulder, chain.hip, chain.ankle),
            hip_flexion_angle=flexion_bearing_angle(chain.shoulder, chain.hip, chain.knee),
            torso_angle=torso_inclination(
                chain.shoulder, chain.hip,
                signed=False,
                vertical_reading=self.TORSO_VERTICAL_READING,
            ),
            relative_height=round(chain.hip.y - chain.knee.y, 4),
            hip_y=chain.hip.y,
            knee_y=chain.knee.y,
        )


class SquatKeyFrameDetector(KeyFrameDetector):
    """
    Standing frame = highest hip, bottom frame = lowest hip.

    Both are searched only among frames whose knee angle lies inside the
    working range, which drops the nearly straight-legged frames recorded
    before and after the set.
    """

    exercise = Exercise.SQUAT
    roles = (KeyFrameRole.INICIO, KeyFrameRole.PEAK)

    SEARCH_KNEE_RANGE = (40.0, 170.0)
    PARALLEL_TOLERANCE = -0.02

    def search(self, frames: List[FeatureFrame]) -> Optional[Repetition]:
        low, high = self.SEARCH_KNEE_RANGE
        working = [f for f in frames if low <= f.knee_angle <= high]
        if not working:
            logger.info(f"No squat frames with knee angle in [{low}, {high}]")
            return self.reject(RejectionReason.NO_KNEE_BEND)

        start = working[index_of_min(working, lambda f: f.hip_y)]
        bottom = working[index_of_max(working, lambda f: f.hip_y)]

        broke_parallel = self.broke_parallel(bottom)
        amplitude = bottom.hip_y - start.hip_y

        logger.info(
            f"Squat: inicio={start.frame_index} ({start.timestamp:.2f}s), "
            f"peak={bottom.frame_index} ({bottom.timestamp:.2f}s), "
            f"knee={bottom.knee_angle:.1f}, broke_parallel={broke_parallel}"
        )

        return self.build(
            start,
            bottom,
            amplitude,
            metrics={
                "broke_parallel": broke_parallel,
                "min_knee_angle": bottom.knee_angle,
                "alignment_angle_at_peak": bottom.alignment_angle,
                "hip_flexion_angle_at_peak": bottom.hip_flexion_angle,
                "hip_amplitude": round(abs(amplitude), 4),
            },
        )

    def broke_parallel(self, bottom: SquatFrame) -> bool:
        """Hip at or below knee height, within tolerance."""
        return (bottom.hip_y - bottom.knee_y) > self.PARALLEL_TOLERANCE

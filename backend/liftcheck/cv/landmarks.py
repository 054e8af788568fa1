"""
Pose landmark model shared by every stage of the pipeline.

Landmarks follow the 33-point MediaPipe Pose index scheme. The core only
reads them; nothing downstream of the pose provider mutates a landmark.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List


NUM_LANDMARKS = 33


class MediaPipeLandmark(IntEnum):
    """MediaPipe Pose landmark indices for quick reference."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


# Joint name -> (left index, right index)
LIMB_JOINTS: Dict[str, tuple] = {
    "shoulder": (MediaPipeLandmark.LEFT_SHOULDER, MediaPipeLandmark.RIGHT_SHOULDER),
    "elbow": (MediaPipeLandmark.LEFT_ELBOW, MediaPipeLandmark.RIGHT_ELBOW),
    "wrist": (MediaPipeLandmark.LEFT_WRIST, MediaPipeLandmark.RIGHT_WRIST),
    "hip": (MediaPipeLandmark.LEFT_HIP, MediaPipeLandmark.RIGHT_HIP),
    "knee": (MediaPipeLandmark.LEFT_KNEE, MediaPipeLandmark.RIGHT_KNEE),
    "ankle": (MediaPipeLandmark.LEFT_ANKLE, MediaPipeLandmark.RIGHT_ANKLE),
    "foot": (MediaPipeLandmark.LEFT_FOOT_INDEX, MediaPipeLandmark.RIGHT_FOOT_INDEX),
}


@dataclass(frozen=True)
class Landmark:
    """Single landmark with normalized position, depth proxy and visibility."""
    x: float  # Normalized x coordinate (0-1)
    y: float  # Normalized y coordinate (0-1), grows downward
    z: float  # Depth relative to hips
    visibility: float = 1.0  # Detector confidence (0-1)


@dataclass(frozen=True)
class LimbChain:
    """One side of the body: the joints every exercise reads."""
    side: str
    shoulder: Landmark
    elbow: Landmark
    wrist: Landmark
    hip: Landmark
    knee: Landmark
    ankle: Landmark
    foot: Landmark

    @classmethod
    def from_landmarks(cls, landmarks: List[Landmark], side: str) -> "LimbChain":
        column = 0 if side == "left" else 1
        joints = {
            name: landmarks[indices[column]]
            for name, indices in LIMB_JOINTS.items()
        }
        return cls(side=side, **joints)


@dataclass
class RawFrame:
    """
    Landmarks detected at one sampled instant.

    Only kept past feature extraction for frames that may need rendering.
    """
    timestamp: float
    sample_index: int
    landmarks: List[Landmark] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """Check that the full 33-point landmark set is present."""
        return len(self.landmarks) >= NUM_LANDMARKS

"""
Shared types for per-exercise feature extraction and key frame detection.

Each exercise provides a FrameFeatureExtractor (one raw landmark frame in,
one validated FeatureFrame or nothing out) and a KeyFrameDetector (ordered
FeatureFrame series in, at most one Repetition out).

Detection is a two-phase extremum search over the series: find a global
extremum, partition the series at it, search the before/after part. There
is no "rep in progress" state, so running a detector twice on the same
series returns the same key frames.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from liftcheck.cv.landmarks import LimbChain, RawFrame
from liftcheck.cv.side_selection import DepthDifferenceSideSelector, SideSelector


class Exercise(str, Enum):
    """Supported lift patterns."""
    SQUAT = "squat"
    DEADLIFT = "deadlift"
    OVERHEAD_PRESS = "overhead_press"
    BENT_ROW = "bent_row"

    @classmethod
    def all(cls) -> List[str]:
        return [e.value for e in cls]


class KeyFrameRole(str, Enum):
    """Structural role of a key frame within the repetition."""
    INICIO = "inicio"    # Start position
    PEAK = "peak"        # Deepest / most contracted point
    LOCKOUT = "lockout"  # Fully extended end position


class RejectionReason(str, Enum):
    """Why a detector found no repetition in a series."""
    TOO_FEW_FRAMES = "too_few_frames"
    NO_KNEE_BEND = "no_knee_bend"
    NO_FRAMES_AFTER_START = "no_frames_after_start"
    NO_FRAMES_BEFORE_LOCKOUT = "no_frames_before_lockout"
    INSUFFICIENT_TRAVEL = "insufficient_travel"


@dataclass
class FeatureFrame:
    """
    Validated per-frame measurements.

    ``frame_index`` is the position in the validated series, not the
    sample number in the video.
    """
    timestamp: float
    frame_index: int
    side: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class KeyFrame:
    """A FeatureFrame tagged with its role in the repetition."""
    role: KeyFrameRole
    frame: FeatureFrame

    @property
    def frame_index(self) -> int:
        return self.frame.frame_index

    @property
    def timestamp(self) -> float:
        return self.frame.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, **self.frame.to_dict()}


@dataclass
class SafetyFlags:
    """Deadlift start-position alerts, measured at the ``inicio`` frame."""
    shoulder_below_hip: bool
    torso_angle_negative: bool
    torso_near_horizontal: bool
    torso_angle: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Repetition:
    """The single representative repetition found in a video."""
    exercise: Exercise
    key_frames: List[KeyFrame]
    amplitude: float  # Normalized image units
    duration: float  # Seconds
    safety_flags: Optional[SafetyFlags] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    def key_frame(self, role: KeyFrameRole) -> Optional[KeyFrame]:
        """Get the key frame with the given role."""
        for key_frame in self.key_frames:
            if key_frame.role == role:
                return key_frame
        return None

    @property
    def roles(self) -> List[str]:
        return [kf.role.value for kf in self.key_frames]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise": self.exercise.value,
            "key_frames": [kf.to_dict() for kf in self.key_frames],
            "amplitude": self.amplitude,
            "duration": self.duration,
            "safety_flags": self.safety_flags.to_dict() if self.safety_flags else None,
            "metrics": dict(self.metrics),
        }


class FrameFeatureExtractor:
    """
    Base class for per-exercise frame feature extraction.

    Subclasses set ``exercise``, ``reference_joints`` (the joint pair the
    side selector compares), ``validity_windows`` (field -> inclusive
    [min, max] in degrees) and implement ``compute``.
    """

    exercise: Exercise
    reference_joints: Tuple[str, str] = ("hip", "knee")
    validity_windows: Dict[str, Tuple[float, float]] = {}

    def __init__(self, side_selector: Optional[SideSelector] = None):
        self.side_selector = side_selector or DepthDifferenceSideSelector()

    def extract(self, raw_frame: RawFrame, frame_index: int) -> Optional[FeatureFrame]:
        """
        Measure one raw frame.

        Returns:
            The FeatureFrame, or None when the landmark set is incomplete or
            an angle falls outside the plausibility window
        """
        if not raw_frame.is_complete:
            return None

        side = self.side_selector.select(raw_frame.landmarks, self.reference_joints)
        chain = LimbChain.from_landmarks(raw_frame.landmarks, side)
        frame = self.compute(chain, raw_frame.timestamp, frame_index)

        if not self.is_plausible(frame):
            return None
        return frame

    def compute(self, chain: LimbChain, timestamp: float, frame_index: int) -> FeatureFrame:
        raise NotImplementedError

    def is_plausible(self, frame: FeatureFrame) -> bool:
        """Check every windowed angle against its validity window."""
        for name, (low, high) in self.validity_windows.items():
            value = getattr(frame, name)
            if not low <= value <= high:
                return False
        return True


class KeyFrameDetector:
    """
    Base class for per-exercise key frame detection.

    Subclasses implement ``search`` over a series already known to hold at
    least MIN_VALID_FRAMES frames, returning ``self.reject(reason)`` for
    "no repetition". The reason of the last ``detect`` call is kept in
    ``rejection_reason``.
    """

    exercise: Exercise
    roles: Tuple[KeyFrameRole, KeyFrameRole] = (KeyFrameRole.INICIO, KeyFrameRole.PEAK)

    MIN_VALID_FRAMES = 10

    def __init__(self):
        self.rejection_reason: Optional[RejectionReason] = None

    def detect(self, frames: Sequence[FeatureFrame]) -> Optional[Repetition]:
        """Locate the key frames of one repetition in an ordered series."""
        self.rejection_reason = None
        if len(frames) < self.MIN_VALID_FRAMES:
            return self.reject(RejectionReason.TOO_FEW_FRAMES)
        return self.search(list(frames))

    def search(self, frames: List[FeatureFrame]) -> Optional[Repetition]:
        raise NotImplementedError

    def reject(self, reason: RejectionReason) -> None:
        self.rejection_reason = reason
        return None

    def build(
        self,
        start: FeatureFrame,
        end: FeatureFrame,
        amplitude: float,
        safety_flags: Optional[SafetyFlags] = None,
        metrics: Optional[Dict[str, Any]] = None,
    ) -> Repetition:
        """Assemble a Repetition from the two located frames."""
        start_role, end_role = self.roles
        return Repetition(
            exercise=self.exercise,
            key_frames=[KeyFrame(start_role, start), KeyFrame(end_role, end)],
            amplitude=round(abs(amplitude), 4),
            duration=round(abs(end.timestamp - start.timestamp), 3),
            safety_flags=safety_flags,
            metrics=metrics or {},
        )


def index_of_min(frames: Sequence[FeatureFrame], key: Callable[[FeatureFrame], float]) -> int:
    """Position of the first frame with the smallest ``key`` value."""
    return min(range(len(frames)), key=lambda i: key(frames[i]))


def index_of_max(frames: Sequence[FeatureFrame], key: Callable[[FeatureFrame], float]) -> int:
    """Position of the first frame with the largest ``key`` value."""
    return max(range(len(frames)), key=lambda i: key(frames[i]))

"""
Packaging of the analysis outcome for downstream feedback generation.

An analysis always ends in one of three statuses:

- COMPLETED: a repetition was found; key frames and metrics are filled in
- NO_POSE_DETECTED: no frame survived validation anywhere in the video
- NO_VALID_REPETITION: frames exist but no representative repetition
  could be located

The two "no result" outcomes are values, not exceptions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from liftcheck.cv.exercises.base import Exercise, FeatureFrame, RejectionReason, Repetition

logger = logging.getLogger(__name__)


def convert_numpy_types(obj):
    """Recursively convert numpy types to Python native types for JSON serialization."""
    if isinstance(obj, dict):
        return {k: convert_numpy_types(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy_types(item) for item in obj]
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    return obj


class AnalysisStatus:
    """Outcome of an analysis."""
    COMPLETED = "completed"
    NO_POSE_DETECTED = "no_pose_detected"
    NO_VALID_REPETITION = "no_valid_repetition"


FEEDBACK_MESSAGES: Dict[str, List[str]] = {
    AnalysisStatus.NO_POSE_DETECTED: [
        "No body pose could be detected in the video.",
        "Make sure the recording is:",
        "- Fully from the SIDE (profile, not facing the camera)",
        "- Showing your WHOLE body (head to feet)",
        "- Well lit",
        "- Taken from a steady camera at mid height",
    ],
    AnalysisStatus.NO_VALID_REPETITION: [
        "No valid repetition was detected.",
        "Make sure to:",
        "- Perform the complete movement",
        "- Keep your whole body visible during the entire exercise",
        "- Record fully in profile",
        "Tip: the movement needs enough range of motion to be measured",
    ],
}

# Inserted after the headline of the NO_VALID_REPETITION feedback.
# Keyed by (exercise, reason); an exercise of None applies to every lift.
REJECTION_FEEDBACK: Dict[Tuple[Optional[Exercise], RejectionReason], List[str]] = {
    (Exercise.SQUAT, RejectionReason.NO_KNEE_BEND): [
        "Your knees stayed almost straight in every frame, so no squat descent was found.",
        "Make sure the clip includes the descent with the knees clearly bent.",
    ],
    (None, RejectionReason.TOO_FEW_FRAMES): [
        "Too few frames showed your whole body to measure a repetition.",
    ],
    (None, RejectionReason.NO_FRAMES_AFTER_START): [
        "The starting position is at the very end of the clip. Keep recording until the lift is finished.",
    ],
    (None, RejectionReason.NO_FRAMES_BEFORE_LOCKOUT): [
        "The lockout is at the very start of the clip. Start recording before you begin pressing.",
    ],
    (None, RejectionReason.INSUFFICIENT_TRAVEL): [
        "Your body barely rose between the start and the end of the lift.",
    ],
}


def rejection_feedback(exercise: Exercise, reason: Optional[RejectionReason]) -> List[str]:
    """Reason-specific feedback lines, preferring the exercise's own wording."""
    if reason is None:
        return []
    lines = REJECTION_FEEDBACK.get((exercise, reason))
    if lines is None:
        lines = REJECTION_FEEDBACK.get((None, reason), [])
    return list(lines)


@dataclass
class AnalysisResult:
    """Everything the analysis produced for one video."""
    exercise: str
    status: str
    frames: List[FeatureFrame] = field(default_factory=list)
    repetition: Optional[Repetition] = None
    images: Dict[str, str] = field(default_factory=dict)  # role -> data URL
    feedback: List[str] = field(default_factory=list)
    rejection_reason: Optional[str] = None

    # Video metadata
    video_duration_seconds: float = 0.0
    video_fps: float = 0.0
    video_width: int = 0
    video_height: int = 0

    # Sampling counters
    samples_requested: int = 0
    frames_detected: int = 0

    processing_time_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.status == AnalysisStatus.COMPLETED

    @property
    def key_frames(self) -> Dict[str, Dict[str, Any]]:
        """Key frames keyed by role."""
        if self.repetition is None:
            return {}
        return {kf.role.value: kf.to_dict() for kf in self.repetition.key_frames}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready dictionary."""
        return convert_numpy_types({
            "exercise": self.exercise,
            "status": self.status,
            "feedback": list(self.feedback),
            "rejection_reason": self.rejection_reason,
            "frames": [f.to_dict() for f in self.frames],
            "key_frames": self.key_frames,
            "repetition": self.repetition.to_dict() if self.repetition else None,
            "images": dict(self.images),
            "video_duration_seconds": self.video_duration_seconds,
            "video_fps": self.video_fps,
            "video_width": self.video_width,
            "video_height": self.video_height,
            "samples_requested": self.samples_requested,
            "frames_detected": self.frames_detected,
            "processing_time_seconds": self.processing_time_seconds,
            "warnings": list(self.warnings),
        })


class ResultAssembler:
    """Builds the AnalysisResult for one exercise."""

    def __init__(self, exercise: Exercise):
        self.exercise = Exercise(exercise)

    def assemble(
        self,
        frames: Sequence[FeatureFrame],
        repetition: Optional[Repetition],
        images: Optional[Dict[str, Optional[str]]] = None,
        rejection_reason: Optional[RejectionReason] = None,
        **metadata: Any,
    ) -> AnalysisResult:
        """
        Package the series, the repetition and the rendered images.

        Args:
            frames: Validated FeatureFrame series, in timestamp order
            repetition: Located repetition, or None
            images: Role -> encoded image; None entries (failed renders)
                are left out
            rejection_reason: Why the detector found no repetition; adds
                targeted lines to the NO_VALID_REPETITION feedback
            **metadata: Video metadata and counters copied onto the result
        """
        frames = list(frames)
        result = AnalysisResult(
            exercise=self.exercise.value,
            status=AnalysisStatus.COMPLETED,
            frames=frames,
            **metadata,
        )

        if not frames:
            result.status = AnalysisStatus.NO_POSE_DETECTED
            result.feedback = list(FEEDBACK_MESSAGES[AnalysisStatus.NO_POSE_DETECTED])
            logger.info(f"{self.exercise.value}: no pose detected")
            return result

        if repetition is None:
            result.status = AnalysisStatus.NO_VALID_REPETITION
            headline, *advice = FEEDBACK_MESSAGES[AnalysisStatus.NO_VALID_REPETITION]
            result.feedback = [headline, *rejection_feedback(self.exercise, rejection_reason), *advice]
            if rejection_reason is not None:
                result.rejection_reason = RejectionReason(rejection_reason).value
            logger.info(
                f"{self.exercise.value}: no valid repetition in {len(frames)} frames "
                f"(reason: {result.rejection_reason})"
            )
            return result

        result.repetition = repetition
        if images is not None:
            for role in repetition.roles:
                image = images.get(role)
                if image:
                    result.images[role] = image
                else:
                    result.warnings.append(f"No image rendered for key frame '{role}'")

        logger.info(
            f"{self.exercise.value}: repetition {repetition.roles} "
            f"amplitude={repetition.amplitude:.3f}, duration={repetition.duration:.2f}s"
        )
        return result

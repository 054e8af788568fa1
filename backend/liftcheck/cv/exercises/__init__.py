"""Per-exercise feature extractors and key frame detectors."""

from typing import Dict, Optional, Tuple, Type, Union

from liftcheck.cv.exercises.base import (
    Exercise,
    FeatureFrame,
    FrameFeatureExtractor,
    KeyFrame,
    KeyFrameDetector,
    KeyFrameRole,
    RejectionReason,
    Repetition,
    SafetyFlags,
)
from liftcheck.cv.exercises.squat import SquatFrame, SquatFeatureExtractor, SquatKeyFrameDetector
from liftcheck.cv.exercises.deadlift import (
    DeadliftFrame, DeadliftFeatureExtractor, DeadliftKeyFrameDetector
)
from liftcheck.cv.exercises.overhead_press import (
    PressFrame, PressFeatureExtractor, PressKeyFrameDetector
)
from liftcheck.cv.exercises.bent_row import RowFrame, RowFeatureExtractor, RowKeyFrameDetector
from liftcheck.cv.side_selection import SideSelector


EXERCISES: Dict[Exercise, Tuple[Type[FrameFeatureExtractor], Type[KeyFrameDetector]]] = {
    Exercise.SQUAT: (SquatFeatureExtractor, SquatKeyFrameDetector),
    Exercise.DEADLIFT: (DeadliftFeatureExtractor, DeadliftKeyFrameDetector),
    Exercise.OVERHEAD_PRESS: (PressFeatureExtractor, PressKeyFrameDetector),
    Exercise.BENT_ROW: (RowFeatureExtractor, RowKeyFrameDetector),
}


def create_extractor(
    exercise: Union[Exercise, str],
    side_selector: Optional[SideSelector] = None,
) -> FrameFeatureExtractor:
    """Factory for the exercise's frame feature extractor."""
    extractor_cls, _ = EXERCISES[Exercise(exercise)]
    return extractor_cls(side_selector=side_selector)


def create_detector(exercise: Union[Exercise, str]) -> KeyFrameDetector:
    """Factory for the exercise's key frame detector."""
    _, detector_cls = EXERCISES[Exercise(exercise)]
    return detector_cls()


__all__ = [
    "Exercise",
    "FeatureFrame",
    "FrameFeatureExtractor",
    "KeyFrame",
    "KeyFrameDetector",
    "KeyFrameRole",
    "RejectionReason",
    "Repetition",
    "SafetyFlags",
    "SquatFrame",
    "SquatFeatureExtractor",
    "SquatKeyFrameDetector",
    "DeadliftFrame",
    "DeadliftFeatureExtractor",
    "DeadliftKeyFrameDetector",
    "PressFrame",
    "PressFeatureExtractor",
    "PressKeyFrameDetector",
    "RowFrame",
    "RowFeatureExtractor",
    "RowKeyFrameDetector",
    "EXERCISES",
    "create_extractor",
    "create_detector",
]

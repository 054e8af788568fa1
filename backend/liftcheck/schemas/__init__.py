"""Pydantic schemas for API request/response models."""

from liftcheck.schemas.analysis import (
    SafetyFlagsResponse,
    RepetitionResponse,
    AnalysisResponse,
    ExerciseInfo,
)

__all__ = [
    "SafetyFlagsResponse",
    "RepetitionResponse",
    "AnalysisResponse",
    "ExerciseInfo",
]

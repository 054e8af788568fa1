"""Analysis schemas."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SafetyFlagsResponse(BaseModel):
    """Deadlift start-position alerts."""
    shoulder_below_hip: bool
    torso_angle_negative: bool
    torso_near_horizontal: bool
    torso_angle: float

    class Config:
        from_attributes = True


class RepetitionResponse(BaseModel):
    """The representative repetition found in the video."""
    exercise: str
    key_frames: List[Dict[str, Any]]  # role + the exercise's frame fields
    amplitude: float
    duration: float
    safety_flags: Optional[SafetyFlagsResponse] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)


class AnalysisResponse(BaseModel):
    """Schema for a completed analysis request."""
    exercise: str
    status: str = Field(..., description="completed, no_pose_detected or no_valid_repetition")
    feedback: List[str] = Field(default_factory=list)
    rejection_reason: Optional[str] = Field(None, description="Why no repetition was found, when status is no_valid_repetition")

    frames: List[Dict[str, Any]] = Field(default_factory=list)
    key_frames: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    repetition: Optional[RepetitionResponse] = None
    images: Dict[str, str] = Field(default_factory=dict)  # role -> data URL

    # Video metadata
    video_duration_seconds: float
    video_fps: float
    video_width: int
    video_height: int

    samples_requested: int
    frames_detected: int
    processing_time_seconds: float
    warnings: List[str] = Field(default_factory=list)


class ExerciseInfo(BaseModel):
    """A supported exercise and the key frames it reports."""
    name: str
    roles: List[str]
    max_frames: int

"""
Computer Vision pipeline for lift technique analysis.

PIPELINE COMPONENTS:
1. FrameSampler: Fixed-step seek over the video + pose detection
2. SideSelector: Picks the body side facing the camera, per frame
3. FrameFeatureExtractor: Joint angles and positions, plausibility windows
4. KeyFrameDetector: Two-phase extremum search for one repetition
5. Visualizer: Skeleton snapshots of the key frames
6. ResultAssembler: Series, key frames, metrics and images in one result
7. VideoProcessor: Main orchestration pipeline

Supported exercises: squat, deadlift, overhead press, bent-over row.

The MediaPipe landmarker lives in ``liftcheck.cv.pose_estimator`` and is
only imported when a pipeline runs without an explicit pose provider.

Usage:
    from liftcheck.cv import VideoProcessor

    result = VideoProcessor("squat").process_video("squat.mp4")
    if result.is_complete:
        print(result.repetition.roles, result.repetition.amplitude)
"""

from liftcheck.cv.geometry import angle_at, flexion_bearing_angle, torso_inclination
from liftcheck.cv.landmarks import Landmark, LimbChain, MediaPipeLandmark, RawFrame
from liftcheck.cv.frame_sampler import FrameSampler, OpenCVVideoSource, VideoSource, VideoSourceError
from liftcheck.cv.side_selection import (
    DepthDifferenceSideSelector,
    SideSelector,
    VisibilitySideSelector,
    create_side_selector,
)
from liftcheck.cv.exercises import (
    Exercise,
    FeatureFrame,
    KeyFrame,
    KeyFrameRole,
    Repetition,
    SafetyFlags,
    create_detector,
    create_extractor,
)
from liftcheck.cv.visualizer import Canvas, OpenCVCanvas, Visualizer
from liftcheck.cv.result_assembler import AnalysisResult, AnalysisStatus, ResultAssembler
from liftcheck.cv.video_processor import VideoProcessor

__all__ = [
    # Geometry
    "angle_at",
    "flexion_bearing_angle",
    "torso_inclination",

    # Landmarks
    "Landmark",
    "LimbChain",
    "MediaPipeLandmark",
    "RawFrame",

    # Sampling
    "FrameSampler",
    "OpenCVVideoSource",
    "VideoSource",
    "VideoSourceError",

    # Side selection
    "SideSelector",
    "DepthDifferenceSideSelector",
    "VisibilitySideSelector",
    "create_side_selector",

    # Exercises
    "Exercise",
    "FeatureFrame",
    "KeyFrame",
    "KeyFrameRole",
    "Repetition",
    "SafetyFlags",
    "create_extractor",
    "create_detector",

    # Rendering
    "Canvas",
    "OpenCVCanvas",
    "Visualizer",

    # Results
    "AnalysisResult",
    "AnalysisStatus",
    "ResultAssembler",

    # Main pipeline
    "VideoProcessor",
]

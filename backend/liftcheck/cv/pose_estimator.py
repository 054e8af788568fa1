"""
Pose landmark provider backed by MediaPipe Pose Landmarker.

Detects the 33 MediaPipe body landmarks on a single decoded video frame.
The landmarker is created lazily once per process and reused by every
analysis; callers sharing it must serialize access (see ``detector_lock``).

Updated for MediaPipe 0.10.30+ Tasks API.
"""

import os
import logging
import threading
from functools import lru_cache
from typing import List, Optional

import cv2
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from liftcheck.config import get_settings
from liftcheck.cv.landmarks import Landmark

logger = logging.getLogger(__name__)

# Held for the duration of an analysis that uses the shared landmarker
detector_lock = threading.Lock()


def get_model_path(complexity: int = 0) -> str:
    """
    Get the path to the pose landmarker model.

    Args:
        complexity: 0=lite (fastest), 1=full, 2=heavy (most accurate)
    """
    settings = get_settings()
    if settings.pose_model_path:
        if not os.path.exists(settings.pose_model_path):
            raise FileNotFoundError(f"Pose landmarker model not found: {settings.pose_model_path}")
        return settings.pose_model_path

    model_names = {
        0: "pose_landmarker_lite.task",
        1: "pose_landmarker_full.task",
        2: "pose_landmarker_heavy.task",
    }
    model_name = model_names.get(complexity, "pose_landmarker_lite.task")

    base_dirs = [
        os.path.join(os.path.dirname(__file__), "..", "..", "models"),
        os.path.join(os.path.dirname(__file__), "..", "..", "..", "models"),
    ]

    for base_dir in base_dirs:
        path = os.path.abspath(os.path.join(base_dir, model_name))
        if os.path.exists(path):
            return path

    # Fallback to any available model
    for base_dir in base_dirs:
        for name in model_names.values():
            path = os.path.abspath(os.path.join(base_dir, name))
            if os.path.exists(path):
                return path

    raise FileNotFoundError(
        "Pose landmarker model not found. "
        "Download from: https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
    )


class PoseEstimator:
    """
    Pose estimation engine using MediaPipe Tasks API (0.10.30+).

    Runs in VIDEO mode with a single tracked person, matching a lifter
    filmed in profile.
    """

    def __init__(
        self,
        model_complexity: int = 0,
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        model_path = get_model_path(model_complexity)

        base_options = python.BaseOptions(model_asset_path=model_path)
        options = vision.PoseLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            min_pose_detection_confidence=min_detection_confidence,
            min_pose_presence_confidence=min_presence_confidence,
            min_tracking_confidence=min_tracking_confidence,
            num_poses=1,  # Single lifter per video
        )

        self.landmarker = vision.PoseLandmarker.create_from_options(options)
        self._frame_timestamp_ms = 0
        logger.info(f"Pose landmarker loaded from {model_path}")

    def detect(self, frame: np.ndarray, timestamp: float) -> Optional[List[Landmark]]:
        """
        Detect landmarks on one frame.

        Args:
            frame: BGR image from OpenCV
            timestamp: Position in the video, in seconds

        Returns:
            33 landmarks, or None when no person was detected
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        # Timestamp must be monotonically increasing in VIDEO mode, also
        # across videos since the landmarker outlives a single analysis
        timestamp_ms = int(timestamp * 1000)
        if timestamp_ms <= self._frame_timestamp_ms:
            timestamp_ms = self._frame_timestamp_ms + 1
        self._frame_timestamp_ms = timestamp_ms

        result = self.landmarker.detect_for_video(mp_image, timestamp_ms)

        if not result.pose_landmarks:
            return None

        return [
            Landmark(
                x=lm.x,
                y=lm.y,
                z=lm.z,
                visibility=lm.visibility if lm.visibility is not None else 1.0,
            )
            for lm in result.pose_landmarks[0]
        ]

    def close(self):
        """Release resources."""
        self.landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@lru_cache
def get_pose_estimator() -> PoseEstimator:
    """Get the process-wide landmarker, creating it on first use."""
    settings = get_settings()
    return PoseEstimator(
        model_complexity=settings.pose_model_complexity,
        min_detection_confidence=settings.min_pose_detection_confidence,
        min_presence_confidence=settings.min_pose_presence_confidence,
        min_tracking_confidence=settings.min_tracking_confidence,
    )

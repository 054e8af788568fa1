"""
Key frame rendering: skeleton overlay on a snapshot of the source video.

Drawing goes through the small ``Canvas`` port so the numeric pipeline can
run and be tested without any image backend. ``OpenCVCanvas`` is the
production implementation.
"""

import base64
import logging
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from liftcheck.cv.frame_sampler import VideoSource
from liftcheck.cv.landmarks import Landmark, MediaPipeLandmark as LM, RawFrame

logger = logging.getLogger(__name__)


# Skeleton drawn on every key frame
SKELETON_CONNECTIONS: List[Tuple[int, int]] = [
    # Torso
    (LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER),
    (LM.LEFT_SHOULDER, LM.LEFT_HIP),
    (LM.RIGHT_SHOULDER, LM.RIGHT_HIP),
    (LM.LEFT_HIP, LM.RIGHT_HIP),
    # Left leg
    (LM.LEFT_HIP, LM.LEFT_KNEE),
    (LM.LEFT_KNEE, LM.LEFT_ANKLE),
    (LM.LEFT_ANKLE, LM.LEFT_FOOT_INDEX),
    # Right leg
    (LM.RIGHT_HIP, LM.RIGHT_KNEE),
    (LM.RIGHT_KNEE, LM.RIGHT_ANKLE),
    (LM.RIGHT_ANKLE, LM.RIGHT_FOOT_INDEX),
    # Arms
    (LM.LEFT_SHOULDER, LM.LEFT_ELBOW),
    (LM.LEFT_ELBOW, LM.LEFT_WRIST),
    (LM.RIGHT_SHOULDER, LM.RIGHT_ELBOW),
    (LM.RIGHT_ELBOW, LM.RIGHT_WRIST),
]

JOINT_MARKERS: List[int] = [
    LM.LEFT_SHOULDER, LM.RIGHT_SHOULDER,
    LM.LEFT_HIP, LM.RIGHT_HIP,
    LM.LEFT_KNEE, LM.RIGHT_KNEE,
    LM.LEFT_ANKLE, LM.RIGHT_ANKLE,
]

# BGR
LINE_COLOR = (0, 0, 255)
MARKER_COLOR = (0, 255, 255)
LABEL_COLOR = (0, 255, 0)
LABEL_OUTLINE_COLOR = (0, 0, 0)

LINE_THICKNESS = 3
MARKER_RADIUS = 6
LABEL_ORIGIN = (20, 50)


class Canvas:
    """Rendering port used by the Visualizer."""

    width: int
    height: int

    def draw_image(self, image: np.ndarray) -> None:
        raise NotImplementedError

    def draw_line(self, start: Tuple[int, int], end: Tuple[int, int], color, thickness: int) -> None:
        raise NotImplementedError

    def draw_circle(self, center: Tuple[int, int], radius: int, color) -> None:
        raise NotImplementedError

    def draw_text(self, text: str, origin: Tuple[int, int], color, outline_color=None) -> None:
        raise NotImplementedError

    def encode(self, image_format: str = "jpeg", quality: int = 90) -> str:
        """Encode the canvas as a base64 ``data:`` URL."""
        raise NotImplementedError


class OpenCVCanvas(Canvas):
    """Canvas backed by a BGR numpy image."""

    FONT = cv2.FONT_HERSHEY_SIMPLEX
    FONT_SCALE = 1.0
    FONT_THICKNESS = 2

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size {width}x{height}")
        self.width = width
        self.height = height
        self.image = np.zeros((height, width, 3), dtype=np.uint8)

    def draw_image(self, image: np.ndarray) -> None:
        if image.shape[1] != self.width or image.shape[0] != self.height:
            image = cv2.resize(image, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        self.image = image.copy()

    def draw_line(self, start, end, color, thickness: int) -> None:
        cv2.line(self.image, start, end, color, thickness, lineType=cv2.LINE_AA)

    def draw_circle(self, center, radius: int, color) -> None:
        cv2.circle(self.image, center, radius, color, thickness=-1, lineType=cv2.LINE_AA)

    def draw_text(self, text: str, origin, color, outline_color=None) -> None:
        if outline_color is not None:
            cv2.putText(
                self.image, text, origin, self.FONT, self.FONT_SCALE,
                outline_color, self.FONT_THICKNESS + 3, cv2.LINE_AA
            )
        cv2.putText(
            self.image, text, origin, self.FONT, self.FONT_SCALE,
            color, self.FONT_THICKNESS, cv2.LINE_AA
        )

    def encode(self, image_format: str = "jpeg", quality: int = 90) -> str:
        image_format = image_format.lower()
        if image_format in ("jpeg", "jpg"):
            ok, buffer = cv2.imencode(".jpg", self.image, [cv2.IMWRITE_JPEG_QUALITY, quality])
            mime = "image/jpeg"
        elif image_format == "png":
            ok, buffer = cv2.imencode(".png", self.image)
            mime = "image/png"
        else:
            raise ValueError(f"Unsupported image format: {image_format}")

        if not ok:
            raise ValueError(f"Failed to encode canvas as {image_format}")

        return f"data:{mime};base64,{base64.b64encode(buffer.tobytes()).decode('ascii')}"


class Visualizer:
    """Renders labeled skeleton snapshots for key frames."""

    def __init__(
        self,
        canvas_factory: Callable[[int, int], Canvas] = OpenCVCanvas,
        image_format: str = "jpeg",
        image_quality: int = 90,
    ):
        self.canvas_factory = canvas_factory
        self.image_format = image_format
        self.image_quality = image_quality

    def render(self, source: VideoSource, raw_frame: RawFrame, label: str) -> Optional[str]:
        """
        Render one key frame.

        Args:
            source: Video the frame was sampled from
            raw_frame: Landmarks and timestamp of the frame
            label: Role label, drawn uppercase

        Returns:
            Encoded image as a data URL, or None if rendering failed
        """
        try:
            image = source.seek(raw_frame.timestamp)
            if image is None:
                logger.warning(f"Could not seek to {raw_frame.timestamp:.3f}s for '{label}' image")
                return None

            canvas = self.canvas_factory(source.width or image.shape[1], source.height or image.shape[0])
            canvas.draw_image(image)
            self.draw_skeleton(canvas, raw_frame.landmarks)
            canvas.draw_text(label.upper(), LABEL_ORIGIN, LABEL_COLOR, LABEL_OUTLINE_COLOR)

            return canvas.encode(self.image_format, self.image_quality)
        except Exception as e:
            logger.warning(f"Failed to render '{label}' image: {e}")
            return None

    def draw_skeleton(self, canvas: Canvas, landmarks: List[Landmark]) -> None:
        """Draw connections and joint markers scaled to the canvas."""
        def to_pixel(landmark: Landmark) -> Tuple[int, int]:
            return int(landmark.x * canvas.width), int(landmark.y * canvas.height)

        for start_idx, end_idx in SKELETON_CONNECTIONS:
            if start_idx < len(landmarks) and end_idx < len(landmarks):
                canvas.draw_line(
                    to_pixel(landmarks[start_idx]),
                    to_pixel(landmarks[end_idx]),
                    LINE_COLOR,
                    LINE_THICKNESS,
                )

        for idx in JOINT_MARKERS:
            if idx < len(landmarks):
                canvas.draw_circle(to_pixel(landmarks[idx]), MARKER_RADIUS, MARKER_COLOR)

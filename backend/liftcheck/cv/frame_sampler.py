"""
Fixed-step frame sampling over a seekable video.

The sampler walks the video at ``1 / fps`` second steps, decoding and
detecting one timestamp at a time. A sample is only requested after the
previous one has been fully processed, so frames come out in
non-decreasing timestamp order.
"""

import logging
from typing import Generator, Optional, Protocol

import cv2
import numpy as np

from liftcheck.cv.landmarks import RawFrame

logger = logging.getLogger(__name__)


class VideoSourceError(Exception):
    """Raised when a video cannot be opened or read at all."""


class PoseProvider(Protocol):
    """Anything that turns a decoded frame into landmarks."""

    def detect(self, frame: np.ndarray, timestamp: float):
        ...


class VideoSource:
    """
    Seekable video resource.

    Subclasses provide ``seek`` plus the basic stream properties. The
    pipeline never decodes containers itself. A ``duration`` of None means
    the container does not report its length; the stream then ends at the
    first timestamp ``seek`` cannot decode.
    """

    duration: Optional[float] = 0.0
    width: int = 0
    height: int = 0
    fps: float = 0.0

    def seek(self, timestamp: float) -> Optional[np.ndarray]:
        """Return the decoded frame at ``timestamp`` seconds, or None."""
        raise NotImplementedError

    def release(self) -> None:
        """Release the underlying handle."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class OpenCVVideoSource(VideoSource):
    """Video file decoded with OpenCV."""

    def __init__(self, video_path: str):
        self.video_path = video_path
        self.cap = cv2.VideoCapture(video_path)
        if not self.cap.isOpened():
            raise VideoSourceError(f"Cannot open video: {video_path}")

        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.fps = self.cap.get(cv2.CAP_PROP_FPS) or 0.0
        total_frames = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        if total_frames > 0 and self.fps > 0:
            self.duration = total_frames / self.fps
        else:
            # WebM and other streamed containers often carry no frame count
            self.duration = self._duration_from_stream_end()

        length = f"{self.duration:.2f}s" if self.duration is not None else "unknown length"
        logger.info(
            f"Opened {video_path}: {length}, {self.fps:.1f}fps, "
            f"{self.width}x{self.height}"
        )

    def _duration_from_stream_end(self) -> Optional[float]:
        """Jump to the end of the stream and read its position, or None."""
        self.cap.set(cv2.CAP_PROP_POS_AVI_RATIO, 1)
        end_ms = self.cap.get(cv2.CAP_PROP_POS_MSEC)
        self.cap.set(cv2.CAP_PROP_POS_AVI_RATIO, 0)
        if end_ms and end_ms > 0:
            return end_ms / 1000.0
        return None

    def seek(self, timestamp: float) -> Optional[np.ndarray]:
        self.cap.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
        ret, frame = self.cap.read()
        if not ret:
            return None
        return frame

    def release(self) -> None:
        self.cap.release()


class FrameSampler:
    """
    Walks a video at a fixed time step and yields detected landmark frames.

    Samples where the seek fails or the provider finds no person are
    skipped silently; they never count against ``max_frames``.
    """

    def __init__(
        self,
        source: VideoSource,
        pose_provider: PoseProvider,
        fps: float = 30.0,
        max_frames: int = 300,
    ):
        if fps <= 0:
            raise ValueError(f"Sampling fps must be positive, got {fps}")
        self.source = source
        self.pose_provider = pose_provider
        self.step = 1.0 / fps
        self.max_frames = max_frames

        # Counters for the last run
        self.samples_requested = 0
        self.frames_detected = 0
        self.decoded_until = 0.0  # End of the last decoded sample, in seconds

    def frames(self) -> Generator[RawFrame, None, None]:
        """Yield RawFrames in timestamp order until the video or the cap ends."""
        self.samples_requested = 0
        self.frames_detected = 0

        self.decoded_until = 0.0

        duration = self.source.duration
        sample_index = 0

        while True:
            timestamp = sample_index * self.step
            if duration is not None and timestamp >= duration:
                break
            sample_index += 1
            self.samples_requested += 1

            image = self.source.seek(timestamp)
            if image is None:
                if duration is None:
                    logger.info(f"Stream of unknown length ended at {timestamp:.2f}s")
                    break
                logger.debug(f"Seek to {timestamp:.3f}s returned no frame")
                continue
            self.decoded_until = timestamp + self.step

            landmarks = self.pose_provider.detect(image, timestamp)
            if not landmarks:
                continue

            self.frames_detected += 1
            yield RawFrame(
                timestamp=timestamp,
                sample_index=sample_index - 1,
                landmarks=list(landmarks),
            )

            if self.frames_detected >= self.max_frames:
                logger.info(f"Reached sample cap of {self.max_frames} frames at {timestamp:.2f}s")
                break

        logger.info(
            f"Sampled {self.samples_requested} timestamps, "
            f"{self.frames_detected} with a detected pose "
            f"({self.decoded_until:.2f}s of video decoded)"
        )

"""
Video processing pipeline for lift technique analysis.

PIPELINE:
1. Frame sampling: fixed-step seek + pose detection
2. Feature extraction: side selection, joint angles, plausibility window
3. Key frame detection: two-phase extremum search for one repetition
4. Key frame rendering: skeleton snapshot per located key frame
5. Result assembly: series, key frames, metrics, images

Each stage runs strictly in order over one sample at a time. An analysis
owns its video handle and releases it on every exit path.
"""

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Dict, List, Optional, Union

from liftcheck.config import Settings, get_settings
from liftcheck.cv.exercises import (
    Exercise,
    FeatureFrame,
    create_detector,
    create_extractor,
)
from liftcheck.cv.frame_sampler import FrameSampler, OpenCVVideoSource, PoseProvider, VideoSource
from liftcheck.cv.landmarks import RawFrame
from liftcheck.cv.result_assembler import AnalysisResult, ResultAssembler
from liftcheck.cv.side_selection import SideSelector, create_side_selector
from liftcheck.cv.visualizer import Visualizer

logger = logging.getLogger(__name__)


class VideoProcessor:
    """
    Main video processing pipeline for one exercise.

    The pose provider defaults to the process-wide MediaPipe landmarker,
    in which case the whole analysis holds ``detector_lock``.
    """

    def __init__(
        self,
        exercise: Union[Exercise, str],
        settings: Optional[Settings] = None,
        pose_provider: Optional[PoseProvider] = None,
        side_selector: Optional[SideSelector] = None,
        visualizer: Optional[Visualizer] = None,
    ):
        """
        Initialize video processor.

        Args:
            exercise: Lift to analyze
            settings: Application settings (default: cached settings)
            pose_provider: Landmark detector (default: shared MediaPipe landmarker)
            side_selector: Side-selection strategy (default: from settings)
            visualizer: Key frame renderer (default: OpenCV renderer when
                ``render_key_frames`` is enabled)
        """
        self.exercise = Exercise(exercise)
        self.settings = settings or get_settings()
        self.pose_provider = pose_provider
        self.side_selector = side_selector or create_side_selector(self.settings.side_selector)

        if visualizer is None and self.settings.render_key_frames:
            visualizer = Visualizer(
                image_format=self.settings.image_format,
                image_quality=self.settings.image_quality,
            )
        self.visualizer = visualizer

    def process_video(self, video_path: str) -> AnalysisResult:
        """
        Analyze a video file.

        Raises:
            VideoSourceError: If the file cannot be opened as a video
        """
        logger.info(f"Starting {self.exercise.value} analysis: {video_path}")
        with OpenCVVideoSource(video_path) as source:
            return self.process_source(source)

    def process_source(self, source: VideoSource) -> AnalysisResult:
        """Analyze an already opened video source."""
        start_time = datetime.now()

        pose_provider, lock = self._resolve_pose_provider()
        with lock:
            result = self._run(source, pose_provider)

        result.processing_time_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Analysis complete in {result.processing_time_seconds:.1f}s: "
            f"status={result.status}, {len(result.frames)} valid frames"
        )
        return result

    def _resolve_pose_provider(self):
        if self.pose_provider is not None:
            return self.pose_provider, nullcontext()

        from liftcheck.cv.pose_estimator import detector_lock, get_pose_estimator
        return get_pose_estimator(), detector_lock

    def _run(self, source: VideoSource, pose_provider: PoseProvider) -> AnalysisResult:
        extractor = create_extractor(self.exercise, side_selector=self.side_selector)
        detector = create_detector(self.exercise)
        assembler = ResultAssembler(self.exercise)

        # =========================================================
        # STAGE 1-2: Sampling + feature extraction
        # =========================================================
        sampler = FrameSampler(
            source,
            pose_provider,
            fps=self.settings.sampling_fps,
            max_frames=self.settings.max_frames_for(self.exercise.value),
        )

        frames: List[FeatureFrame] = []
        raw_frames: Dict[int, RawFrame] = {}

        for raw_frame in sampler.frames():
            feature_frame = extractor.extract(raw_frame, frame_index=len(frames))
            if feature_frame is None:
                continue
            raw_frames[feature_frame.frame_index] = raw_frame
            frames.append(feature_frame)

        logger.info(
            f"Extracted {len(frames)} valid frames out of "
            f"{sampler.frames_detected} detected poses"
        )

        # =========================================================
        # STAGE 3: Key frame detection
        # =========================================================
        repetition = detector.detect(frames)

        # =========================================================
        # STAGE 4: Key frame rendering
        # =========================================================
        images: Optional[Dict[str, Optional[str]]] = None
        if repetition is not None and self.visualizer is not None:
            images = {}
            for key_frame in repetition.key_frames:
                raw_frame = raw_frames.get(key_frame.frame_index)
                if raw_frame is None:
                    images[key_frame.role.value] = None
                    continue
                images[key_frame.role.value] = self.visualizer.render(
                    source, raw_frame, key_frame.role.value
                )

        # =========================================================
        # STAGE 5: Assembly
        # =========================================================
        duration = source.duration
        if duration is None:
            duration = sampler.decoded_until

        return assembler.assemble(
            frames,
            repetition,
            images,
            rejection_reason=detector.rejection_reason,
            video_duration_seconds=duration,
            video_fps=source.fps,
            video_width=source.width,
            video_height=source.height,
            samples_requested=sampler.samples_requested,
            frames_detected=sampler.frames_detected,
        )

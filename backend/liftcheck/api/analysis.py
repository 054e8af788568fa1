"""Lift analysis API endpoints."""

import logging
import uuid
from pathlib import Path
from typing import List

from fastapi import APIRouter, HTTPException, UploadFile, File, status
from fastapi.concurrency import run_in_threadpool

from liftcheck.config import get_settings
from liftcheck.cv.exercises import Exercise, create_detector
from liftcheck.cv.frame_sampler import VideoSourceError
from liftcheck.schemas.analysis import AnalysisResponse, ExerciseInfo

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


ALLOWED_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}
MAX_FILE_SIZE = settings.max_video_size_mb * 1024 * 1024  # Convert to bytes


def validate_video_file(filename: str, file_size: int) -> None:
    """Validate video file extension and size."""
    ext = Path(filename or "").suffix.lower()

    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {sorted(ALLOWED_EXTENSIONS)}"
        )

    if file_size == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty file"
        )

    if file_size > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum: {settings.max_video_size_mb}MB"
        )


def run_analysis(exercise: Exercise, video_path: str) -> dict:
    """Run the pipeline synchronously and serialize the result."""
    from liftcheck.cv.video_processor import VideoProcessor

    processor = VideoProcessor(exercise, settings=settings)
    return processor.process_video(video_path).to_dict()


@router.get("/exercises", response_model=List[ExerciseInfo])
async def list_exercises():
    """List supported exercises and the key frames reported for each."""
    return [
        ExerciseInfo(
            name=exercise.value,
            roles=[role.value for role in create_detector(exercise).roles],
            max_frames=settings.max_frames_for(exercise.value),
        )
        for exercise in Exercise
    ]


@router.post("/{exercise}", response_model=AnalysisResponse)
async def analyze_video(
    exercise: Exercise,
    file: UploadFile = File(...),
):
    """
    Analyze one repetition of the given exercise.

    The upload is written to a temporary file, analyzed, and deleted
    before the response is returned. Videos must be filmed from the side
    with the whole body in frame.
    """
    contents = await file.read()
    validate_video_file(file.filename, len(contents))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_ext = Path(file.filename).suffix.lower()
    file_path = upload_dir / f"{uuid.uuid4()}{file_ext}"

    with open(file_path, "wb") as f:
        f.write(contents)

    try:
        return await run_in_threadpool(run_analysis, exercise, str(file_path))
    except VideoSourceError as e:
        logger.warning(f"Unreadable upload {file.filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not read the uploaded video"
        )
    except Exception:
        logger.exception(f"Analysis failed for {file.filename} ({exercise.value})")
        raise
    finally:
        file_path.unlink(missing_ok=True)

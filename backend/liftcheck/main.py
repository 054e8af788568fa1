"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from liftcheck.config import get_settings
from liftcheck.api import api_router
from liftcheck.cv.exercises import EXERCISES

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Lift Technique Analyzer API

    Extracts one representative repetition from a side-view video of a
    squat, deadlift, overhead press or bent-over row.

    ## What you get back

    - **Frame series**: joint angles and positions for every valid sample
    - **Key frames**: start and peak/lockout of the repetition
    - **Metrics**: amplitude, duration and per-exercise measurements
    - **Images**: labeled skeleton snapshots of the key frames

    Videos that yield no pose or no repetition return a status and
    feedback messages instead of an error.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


POSE_MODELS = {0: "lite", 1: "full", 2: "heavy"}


@app.get("/health")
async def health_check():
    """Health check with the analysis configuration in effect."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": app.version,
        "exercises": [exercise.value for exercise in EXERCISES],
        "sampling_fps": settings.sampling_fps,
        "pose_model": settings.pose_model_path or POSE_MODELS.get(settings.pose_model_complexity, "lite"),
        "render_key_frames": settings.render_key_frames,
    }


@app.get("/")
async def root():
    """Root endpoint: where to upload each lift."""
    analysis_url = f"{settings.api_prefix}/analysis"
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health",
        "exercises": f"{analysis_url}/exercises",
        "analyze": {exercise.value: f"{analysis_url}/{exercise.value}" for exercise in EXERCISES},
        "max_video_size_mb": settings.max_video_size_mb,
    }

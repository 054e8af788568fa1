"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Lift Technique Analyzer"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Uploads (temporary, deleted after analysis)
    upload_dir: str = "./uploads"
    max_video_size_mb: int = 200

    # Frame sampling
    sampling_fps: float = 30.0  # Seek step = 1 / sampling_fps seconds
    max_frames: int = 300  # Cap on detected samples per analysis
    squat_max_frames: int = 90  # Squat videos are short, single descent

    # Pose Estimation (MediaPipe Tasks)
    pose_model_complexity: int = 0  # 0=lite, 1=full, 2=heavy
    pose_model_path: str = ""  # Explicit .task file, overrides complexity lookup
    min_pose_detection_confidence: float = 0.5
    min_pose_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    # Side selection: "depth_difference" or "visibility"
    side_selector: str = "depth_difference"

    # Key frame rendering
    render_key_frames: bool = True
    image_format: str = "jpeg"
    image_quality: int = 90

    class Config:
        env_file = ".env"
        env_prefix = "LIFTCHECK_"
        extra = "ignore"

    def max_frames_for(self, exercise: str) -> int:
        """Sample cap for the given exercise."""
        if exercise == "squat":
            return self.squat_max_frames
        return self.max_frames


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional

class Settings(BaseSettings):
    # App Settings
    app_title: str = "Cut Engine API"
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Cleanup service (optional)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"

    # External media tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    analysis_timeout: float = 300.0
    analysis_concurrency: int = 3

    # Supervised encoder invocations
    encoder_timeout: float = 600.0
    encoder_max_attempts: int = 3
    encoder_retry_delay: float = 1.0
    encoder_kill_grace: float = 5.0

    # Path Configuration
    base_dir: Path = Path(__file__).resolve().parent.parent
    output_dir: Path = base_dir / "output"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

settings = Settings()

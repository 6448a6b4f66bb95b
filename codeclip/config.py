"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """CodeClip application settings loaded from environment variables."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    # Storage: "sqlite" or "memory"
    storage_backend: str = "sqlite"

    # Data paths
    data_dir: Path = Path("/data")
    db_path: Path = Path("/data/codeclip.db")

    # Clipboard policy
    default_edit_expiry_minutes: int = 30
    max_create_attempts: int = 5

    # Background cleanup (0 disables the periodic sweep)
    sweep_interval_seconds: int = 300

    # CORS (comma-separated extra origins, in addition to localhost defaults)
    cors_origins: str = ""

    model_config = {
        "env_prefix": "CODECLIP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def default_edit_expiry_seconds(self) -> int:
        return self.default_edit_expiry_minutes * 60


# Singleton instance
settings = Settings()

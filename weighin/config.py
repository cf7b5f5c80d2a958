from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Weigh-In"
    debug: bool = False
    log_level: str = "INFO"

    # Security
    secret_key: str = "dev-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Storage - one JSON document plus an uploads directory
    data_root: Path = Path("data")
    max_upload_bytes: int = 5 * 1024 * 1024

    @property
    def db_path(self) -> Path:
        return self.data_root / "db.json"

    @property
    def uploads_dir(self) -> Path:
        return self.data_root / "uploads"


@lru_cache
def get_settings() -> Settings:
    return Settings()

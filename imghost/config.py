from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 64 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="IMGHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "imghost"
    debug: bool = False
    log_level: str = "INFO"
    storage_dir: str = "upload"
    static_dir: str = "static"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    tls: bool = False
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, ge=1)

    @property
    def storage_path(self) -> Path:
        return Path(self.storage_dir)

    @property
    def scheme(self) -> str:
        # Only affects generated URLs; TLS is terminated in front of us.
        return "https" if self.tls else "http"


def ensure_storage_path(path: Path) -> None:
    """Create the storage directory, tolerating one that already exists.

    Any other failure (a regular file in the way, missing permissions) is
    left to propagate so startup aborts.
    """
    path.mkdir(parents=True, exist_ok=True)

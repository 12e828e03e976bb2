from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADMIN_PASSWORD = "admin123"


class Settings(BaseSettings):
    """Process-wide configuration, built once at start-up and passed around explicitly."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "attendees.db"
    layout_path: Optional[Path] = None  # defaults to <data_dir>/print-layout.json
    lock_timeout: float = 5.0

    # Admin
    admin_username: str = "admin"
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def db_lock_path(self) -> Path:
        return self.data_dir / (self.db_name + ".lock")

    @property
    def resolved_layout_path(self) -> Path:
        return self.layout_path or self.data_dir / "print-layout.json"

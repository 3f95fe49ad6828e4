"""Application settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings.

    Hey future me - in production this points at the MANAGED Postgres of the
    hosted backend (postgresql+asyncpg://...). Locally and in tests it's SQLite.
    """

    url: str = "sqlite+aiosqlite:///./talebox.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True


class StorageSettings(BaseModel):
    """Object storage settings for audio and cover assets."""

    backend_url: str = "http://localhost:54321"
    audio_bucket: str = "book-audios"
    cover_bucket: str = "book-covers"
    public_path: str = "/storage/v1/object/public"

    @field_validator("backend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class PlaybackSettings(BaseModel):
    """Playback tuning.

    Hey future me - checkpoint_interval is in MEDIA seconds, not wall clock!
    The session writes one checkpoint per interval bucket of elapsed media time.
    """

    probe_timeout: float = Field(default=5.0, gt=0)
    checkpoint_interval: int = Field(default=10, ge=1)
    mobile_settle_delay: float = Field(default=0.3, ge=0)
    # None = self-hosted demo object in the audio bucket (see AudioUrlResolver)
    fallback_audio_url: str | None = None
    fallback_audio_key: str = "demo/demo-audio.mp3"
    speed_options: list[float] = Field(default_factory=lambda: [0.75, 1.0, 1.25, 1.5, 2.0])
    skip_seconds: float = 15.0
    continue_listening_limit: int = Field(default=5, ge=1)


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_json_format: bool = False
    log_request_body: bool = False


class ApiSettings(BaseModel):
    """HTTP API settings."""

    host: str = "127.0.0.1"
    port: int = 8765
    cors_origins: list[str] = Field(default_factory=list)


class Settings(BaseSettings):
    """Root settings object.

    Nested groups are filled from env vars with a double underscore, e.g.
    PLAYBACK__PROBE_TIMEOUT=3 or STORAGE__BACKEND_URL=https://xyz.example.co
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "talebox"
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite database file path, or None for other backends."""
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, path = url.partition(":///")
        if not path or path == ":memory:":
            return None
        return Path(path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

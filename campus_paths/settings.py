from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_base_url() -> str:
    # The campus pathfinding server listens on 4567 when run locally.
    return "http://localhost:4567"


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping the service address out of code."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(default_factory=_default_base_url, alias="CAMPUS_PATHS_BASE_URL")
    request_timeout_s: float = Field(default=30.0, ge=1.0, le=300.0, alias="CAMPUS_PATHS_REQUEST_TIMEOUT_S")
    connect_timeout_s: float = Field(default=5.0, ge=0.1, le=60.0, alias="CAMPUS_PATHS_CONNECT_TIMEOUT_S")

    map_image_path: str = Field(default="campus_map.jpg", alias="CAMPUS_PATHS_MAP_IMAGE")
    stroke_color: str = Field(default="yellow", alias="CAMPUS_PATHS_STROKE_COLOR")
    stroke_width: int = Field(default=10, ge=1, le=100, alias="CAMPUS_PATHS_STROKE_WIDTH")

    out_dir: str = Field(default="out", alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")


settings = Settings()

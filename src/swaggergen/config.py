"""Generator settings, read from ``SWAGGERGEN_*`` environment variables or ``.env``."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OutputFormat = Literal["json", "yaml"]

DEFAULT_MEDIA_TYPES = ["application/json"]


class Settings(BaseSettings):
    """Knobs that shape the emitted documents without touching the design."""

    debug: bool = False
    output_dir: Path = Path("gen/http")
    formats: list[OutputFormat] = Field(default_factory=lambda: ["json", "yaml"])
    json_indent: int | None = None  # None renders compact JSON
    consumes: list[str] = Field(default_factory=lambda: list(DEFAULT_MEDIA_TYPES))
    produces: list[str] = Field(default_factory=lambda: list(DEFAULT_MEDIA_TYPES))
    max_name_suffix: int = 1000
    swagger_version: str = "2.0"

    model_config = SettingsConfigDict(
        env_prefix="SWAGGERGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("formats")
    @classmethod
    def _unique_formats(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one output format is required")
        # keep declaration order, drop repeats
        return list(dict.fromkeys(v))

    @field_validator("max_name_suffix")
    @classmethod
    def _positive_suffix(cls, v: int) -> int:
        if v < 2:
            raise ValueError("max_name_suffix must be at least 2")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()

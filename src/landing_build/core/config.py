from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LANDING_BUILD_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    src_dir: Path = Field(default=Path("src/main/html"))
    dist_dir: Path = Field(default=Path("dist"))
    font_source_dir: Path = Field(default=Path("node_modules/@fontsource/roboto/files"))
    run_root: Path = Field(default=Path("_runs"))

    avatar_url: str = Field(default="https://github.com/bmarwell.png")
    site_url: str = Field(default="https://bmarwell.de")
    fetch_timeout_s: float = Field(default=30.0, gt=0)
    max_redirects: int = Field(default=5, ge=0)

    # Compression levels keep the bare env names used by the old build scripts.
    brotli_level: int = Field(
        default=11,
        ge=0,
        le=11,
        validation_alias=AliasChoices("BROTLI_LEVEL", "LANDING_BUILD_BROTLI_LEVEL"),
    )
    gzip_level: int = Field(
        default=9,
        ge=1,
        le=9,
        validation_alias=AliasChoices("GZIP_LEVEL", "LANDING_BUILD_GZIP_LEVEL"),
    )
    zstd_level: int = Field(
        default=22,
        ge=1,
        le=22,
        validation_alias=AliasChoices("ZSTD_LEVEL", "LANDING_BUILD_ZSTD_LEVEL"),
    )
    enable_zstd: bool = Field(default=True)

    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()

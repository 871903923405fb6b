"""Run configuration loaded from environment variables and CLI overrides."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_META_SUFFIX = ".meta"
DEFAULT_CHUNK_SIZE = 8192


class Verbosity(StrEnum):
    """Console reporting level."""

    MINIMAL = "minimal"
    DEFAULT = "default"
    VERBOSE = "verbose"


@dataclass(frozen=True)
class ValidateOptions:
    """Immutable per-run options passed to the engine, policy and run driver."""

    verify_contents: bool = False
    dry_run: bool = False
    trust_timestamps: bool = False
    verbosity: Verbosity = Verbosity.DEFAULT
    meta_suffix: str = DEFAULT_META_SUFFIX
    chunk_size: int = DEFAULT_CHUNK_SIZE
    jobs: int = 1

    def __post_init__(self) -> None:
        if self.jobs < 1:
            msg = f"jobs must be >= 1, got {self.jobs}"
            raise ValueError(msg)
        if self.chunk_size < 1:
            msg = f"chunk_size must be >= 1, got {self.chunk_size}"
            raise ValueError(msg)


class Settings(BaseSettings):
    """AssetGuard settings."""

    model_config = SettingsConfigDict(
        env_prefix="ASSETGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    root_dir: Path = Path(".")
    meta_suffix: str = DEFAULT_META_SUFFIX
    skip_hidden: bool = False

    # Hashing
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    jobs: int = Field(default=1, ge=1, le=256)

    # Behaviour
    verify_contents: bool = False
    dry_run: bool = False
    trust_timestamps: bool = False
    verbosity: Verbosity = Verbosity.DEFAULT

    @field_validator("meta_suffix")
    @classmethod
    def check_meta_suffix(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2 or "/" in v:
            msg = f"meta_suffix must look like '.meta', got {v!r}"
            raise ValueError(msg)
        return v

    def to_options(self) -> ValidateOptions:
        """Freeze the behavioural settings into a ValidateOptions value."""
        return ValidateOptions(
            verify_contents=self.verify_contents,
            dry_run=self.dry_run,
            trust_timestamps=self.trust_timestamps,
            verbosity=self.verbosity,
            meta_suffix=self.meta_suffix,
            chunk_size=self.chunk_size,
            jobs=self.jobs,
        )

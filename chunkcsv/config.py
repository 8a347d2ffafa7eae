"""
Name: Application Configuration (Settings)

Responsibilities:
  - Typed configuration from CHUNKCSV_* environment variables (or .env)
  - Defaults for read window, leniency options and truncation policy

Notes:
  - Singleton via lru_cache; tests build Settings(...) directly
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ParseOptions
from .rules import CHUNK_SIZE, SNIFF_BYTES


class Settings(BaseSettings):
    """
    Attributes:
        chunk_size: Bytes per read window (default: 1 MiB)
        strict: Default strict mode for /parse
        allow_bare_lf: Accept a lone LF as record end in strict mode
        allow_bare_cr: Accept a lone CR as record end in strict mode
        on_truncated: "warn" drops a trailing partial character, "error" rejects the input
        sniff_bytes: Sample size for the encoding hint on decode errors
        log_level: Level of the chunkcsv logger
    """

    model_config = SettingsConfigDict(
        env_prefix="CHUNKCSV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    chunk_size: int = CHUNK_SIZE
    strict: bool = True
    allow_bare_lf: bool = False
    allow_bare_cr: bool = False
    on_truncated: Literal["warn", "error"] = "warn"
    sniff_bytes: int = SNIFF_BYTES
    log_level: str = "INFO"

    @field_validator("chunk_size", "sniff_bytes")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        value = v.strip().upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unsupported log level: {v}")
        return value

    def default_options(self) -> ParseOptions:
        return ParseOptions(
            strict=self.strict,
            allow_bare_lf=self.allow_bare_lf,
            allow_bare_cr=self.allow_bare_cr,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""
Runtime settings.

Defaults mirror the limits of the original desktop converter. Each field can
be overridden through a SAVECONV_<FIELD> environment variable.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "SAVECONV_"


class Settings(BaseModel):
    max_save_bytes: int = Field(default=256 * 1024, gt=0)
    max_rom_bytes: int = Field(default=64 * 1024 * 1024, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("chunk_size")
    @classmethod
    def _chunk_size_word_aligned(cls, v: int) -> int:
        # streamed byte swapping relies on chunks holding whole 32-bit words
        if v % 4:
            raise ValueError("chunk_size must be a multiple of 4")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ
    values: Dict[str, str] = {}
    for name in Settings.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = raw
    return Settings.model_validate(values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings_from_env()

"""Startup options and environment-driven settings."""

import logging
import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_INIT_FILE = "init.scalc"

ENV_PREFIX = "SCALC_"


class Settings(BaseModel):
    """Settings read from SCALC_* environment variables (a .env file is loaded first by main)."""
    init_file: str = DEFAULT_INIT_FILE
    history_file: Optional[str] = None
    log_level: str = "WARNING"
    color: Optional[bool] = Field(None, description="Force colored errors on or off; None means auto")

    @field_validator('init_file')
    @classmethod
    def init_file_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('init_file cannot be blank')
        return v

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'Unknown log level: {v}')
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environ (default os.environ); empty values count as unset."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper(), "")
            if raw.strip():
                values[name] = raw.strip()
        return cls(**values)


class Options(BaseModel):
    """Options given on the command line."""
    help: bool = False
    version: bool = False
    once: bool = False
    files: List[str] = Field(default_factory=lambda: [DEFAULT_INIT_FILE])

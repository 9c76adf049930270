"""Runtime settings loaded from the environment and an optional .env file."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_HISTORY_FILE = os.path.expanduser("~/.pupil_history")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    """Settings for the command-line front end."""
    history_file: str = Field(default=DEFAULT_HISTORY_FILE, description="prompt_toolkit history file")
    log_level: str = Field(default="WARNING", description="Root logging level name")
    prompt: str = Field(default=">>> ", description="Interactive prompt")

    @field_validator('history_file')
    @classmethod
    def history_file_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('History file cannot be empty')
        return os.path.expanduser(v.strip())

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'Unknown log level: {v}')
        return level


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read PUPIL_* variables, after loading ``env_file`` (or ./.env) if present."""
    load_dotenv(env_file)
    values = {}
    for field, var in (
        ('history_file', 'PUPIL_HISTORY_FILE'),
        ('log_level', 'PUPIL_LOG_LEVEL'),
        ('prompt', 'PUPIL_PROMPT'),
    ):
        if os.getenv(var) is not None:
            values[field] = os.getenv(var)
    return Settings(**values)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)

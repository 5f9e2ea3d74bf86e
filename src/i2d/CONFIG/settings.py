"""
Settings for i2d, read from an optional .env file and I2D_* environment variables.
"""
import os
from typing import Dict, Optional
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, field_validator

from ..REGISTRY.image_reference import ImageReference

LOG_LEVELS = ("debug", "info", "warn", "error", "fatal")

ENV_PREFIX = "I2D_"

class Settings(BaseModel):
    """
    Runtime settings. Command line options take precedence over these.
    """
    repository: str = ImageReference.DEFAULT_REPOSITORY
    log_level: str = "info"
    username: Optional[str] = None
    password: Optional[str] = None
    docker_host: Optional[str] = None
    timeout: int = 60
    connect_retries: int = 3

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        # Unknown levels fall back to info
        level = str(value or "").lower()
        if level == "warning":
            level = "warn"
        return level if level in LOG_LEVELS else "info"

    @field_validator("connect_retries")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("connect_retries must be at least 1")
        return value

def _collect(values: Dict[str, Optional[str]]) -> Dict[str, str]:
    """
    Picks the i2d settings out of a mapping of environment variables.
    """
    settings = {}
    for key, value in values.items():
        if value is None or value == "":
            continue
        if key.startswith(ENV_PREFIX):
            settings[key[len(ENV_PREFIX):].lower()] = value
        elif key == "DOCKER_HOST":
            settings["docker_host"] = value
    return settings

def load_settings(env_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Loads settings from a .env file overlaid by the process environment.

    Args:
        env_file (str): Path to a .env file. Defaults to the nearest .env
            found from the current directory, if any.
        environ (dict): Environment to read. Defaults to os.environ.

    Returns:
        Settings: The loaded settings.
    """
    if env_file is None:
        env_file = find_dotenv(usecwd=True)
    values: Dict[str, Optional[str]] = {}
    if env_file:
        values.update(dotenv_values(env_file))
    values.update(os.environ if environ is None else environ)

    known = set(Settings.model_fields)
    return Settings(**{k: v for k, v in _collect(values).items() if k in known})

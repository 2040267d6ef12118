"""Runtime settings read from the environment."""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ValidationError, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Settings for logging and row preparation."""
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    default_resolver_alias: str = "text"

    model_config = {"extra": "forbid"}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{v}'")
        return v

    @field_validator("default_resolver_alias")
    @classmethod
    def validate_default_resolver_alias(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_resolver_alias must not be blank")
        return v


def _setting_from_env(env: Mapping[str, str], var_name: str, field: str) -> Optional[str]:
    raw = env.get(var_name)
    if not raw or not raw.strip():
        return None
    try:
        Settings(**{field: raw.strip().lower() if field == "log_format" else raw})
    except ValidationError:
        return None
    return raw.strip().lower() if field == "log_format" else raw


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from BULKPLAN_* variables.

    Invalid values fall back to the defaults instead of failing startup.
    """
    env = os.environ if env is None else env
    values = {}
    for var_name, field in (
        ("BULKPLAN_LOG_LEVEL", "log_level"),
        ("BULKPLAN_LOG_FORMAT", "log_format"),
        ("BULKPLAN_DEFAULT_RESOLVER", "default_resolver_alias"),
    ):
        value = _setting_from_env(env, var_name, field)
        if value is not None:
            values[field] = value
    return Settings(**values)

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="LUX_DATABASE_URL")
    database_pool_size: int = Field(10, alias="LUX_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="LUX_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="LUX_DATABASE_ECHO")
    academic_year: str = Field("2025-26", alias="LUX_ACADEMIC_YEAR", pattern=r"^\d{4}-\d{2}$")
    default_modifier: str = Field("I", alias="LUX_DEFAULT_MODIFIER", min_length=1)
    max_modifiers: int = Field(3, alias="LUX_MAX_MODIFIERS", ge=1, le=3)
    theme_timezone: str = Field("UTC", alias="LUX_THEME_TIMEZONE")
    upcoming_theme_horizon_days: int = Field(7, alias="LUX_UPCOMING_THEME_DAYS", ge=1)
    admin_token: Optional[str] = Field(None, alias="LUX_ADMIN_TOKEN")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc

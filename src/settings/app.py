"""Handle defaults powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EasySettings(BaseSettings):
    """Environment defaults applied to every new handle."""

    model_config = SettingsConfigDict(
        env_prefix="EASY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_retries: Annotated[int, Field(ge=0)] = 40
    user_agent: str | None = Field(
        default=None, description="User-Agent sent unless a handle overrides it"
    )
    verbose: bool = False


def get_settings() -> EasySettings:
    """Get a settings instance."""
    return EasySettings()

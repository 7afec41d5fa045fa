from __future__ import annotations

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Settings for code talking to the API over HTTP. Read from CHAT_API_* variables."""

    BASE_URL: str = "http://localhost:8000"
    TIMEOUT: float = 15.0

    @field_validator("BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    model_config = ConfigDict(
        env_prefix="CHAT_API_",
        env_file=".env",
        extra="ignore",
    )

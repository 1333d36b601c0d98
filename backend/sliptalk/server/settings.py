"""SlipTalk server configuration via environment variables."""

from typing import Annotated

from pydantic import Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, NoDecode

_ORIGIN_LIST = TypeAdapter(list[str])


class SlipTalkServerSettings(BaseSettings):
    model_config = {"env_prefix": "SLIPTALK_"}

    log_dir: str = Field(default="backend/logs/sliptalk", min_length=1)
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a list, a JSON array string, or a comma-separated string."""
        if isinstance(v, list):
            return v
        stripped = v.strip()
        origins = (
            _ORIGIN_LIST.validate_json(stripped)
            if stripped.startswith("[")
            else [origin.strip() for origin in stripped.split(",") if origin.strip()]
        )
        if not origins:
            raise ValueError("cors_origins must not be empty")
        return origins

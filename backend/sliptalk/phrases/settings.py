"""Generative-language API settings."""

from pydantic import Field
from pydantic_settings import BaseSettings


class GeminiSettings(BaseSettings):
    model_config = {"env_prefix": "GEMINI_"}

    # Empty means not configured: generation falls back without calling out.
    api_key: str = ""

    model: str = Field(default="gemini-1.5-pro", min_length=1)
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta", min_length=1)
    timeout_seconds: float = Field(default=30.0, gt=0)

    temperature: float = Field(default=0.9, ge=0)
    top_p: float = Field(default=0.95, gt=0, le=1)
    top_k: int = Field(default=40, ge=1)

    # Retry-After value reported when the upstream 429 carries none
    default_retry_after_seconds: int = Field(default=60, ge=1)

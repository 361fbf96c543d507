"""Provider and model settings.

Settings are plain pydantic models. ``DifyProviderSettings.from_env`` loads a
``.env`` file (python-dotenv) before reading the process environment, the
same way the provider adapters resolve their API keys.
"""

import os
from typing import Any, Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .constants import (
    API_KEY_ENV_VAR,
    BASE_URL_ENV_VAR,
    DEFAULT_BASE_URL,
    DEFAULT_RESPONSE_MODE,
    DEFAULT_TIMEOUT_SECONDS,
)


ResponseMode = Literal["streaming", "blocking"]


class DifyChatSettings(BaseModel):
    """Per-application settings for a chat model."""

    response_mode: ResponseMode = Field(
        default=DEFAULT_RESPONSE_MODE,
        description="Default response mode used by high-level callers (CLI, HTTP layer)"
    )
    inputs: Dict[str, Any] = Field(
        default_factory=dict,
        description="App variables sent as the 'inputs' object of every request"
    )
    api_key: Optional[str] = Field(
        None,
        description="Application API key; overrides the provider-level key"
    )


class DifyProviderSettings(BaseModel):
    """Connection settings shared by every model created by a provider."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    api_key: Optional[str] = Field(None, description="Default application API key")
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request"
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("base_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> "DifyProviderSettings":
        """Build settings from DIFY_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        load_dotenv()
        values: Dict[str, Any] = {}
        base_url = os.getenv(BASE_URL_ENV_VAR)
        if base_url:
            values["base_url"] = base_url
        api_key = os.getenv(API_KEY_ENV_VAR)
        if api_key:
            values["api_key"] = api_key
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

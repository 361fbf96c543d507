"""
Dify provider factory.

A provider holds connection settings and creates one language model per
Dify application. Applications are addressed by an arbitrary model id; the
application's API key selects the app on the Dify side.
"""

from typing import Dict, Optional

import httpx

from ...config.constants import CHAT_MESSAGES_PATH, PROVIDER_NAME
from ...config.settings import DifyChatSettings, DifyProviderSettings
from ..base import ProviderError
from .adapter import DifyChatLanguageModel, DifyModelConfig


class DifyProvider:
    """Creates ``DifyChatLanguageModel`` instances sharing one configuration."""

    def __init__(
        self,
        settings: Optional[DifyProviderSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self.transport = transport

    @property
    def settings(self) -> DifyProviderSettings:
        """Provider settings, read from the environment on first use if not given."""
        if self._settings is None:
            self._settings = DifyProviderSettings.from_env()
        return self._settings

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url}{CHAT_MESSAGES_PATH}"

    def __call__(self, model_id: str, settings: Optional[DifyChatSettings] = None) -> DifyChatLanguageModel:
        return self.chat(model_id, settings)

    def chat(self, model_id: str, settings: Optional[DifyChatSettings] = None) -> DifyChatLanguageModel:
        """
        Create a chat model for one Dify application.

        Args:
            model_id: Identifier of the application (used for logging)
            settings: Per-application settings; ``settings.api_key`` overrides
                the provider key

        Raises:
            ProviderError: If no API key is configured
        """
        settings = settings or DifyChatSettings()
        api_key = settings.api_key or self.settings.api_key
        if not api_key:
            raise ProviderError(
                "Dify API key not found. Pass api_key or set DIFY_API_KEY.",
                provider="dify",
            )

        extra_headers = dict(self.settings.headers)

        def headers() -> Dict[str, str]:
            return {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                **extra_headers,
            }

        config = DifyModelConfig(
            provider=PROVIDER_NAME,
            endpoint=self.endpoint,
            headers=headers,
            timeout=self.settings.timeout,
            transport=self.transport,
        )
        return DifyChatLanguageModel(model_id, settings, config)


def create_dify_provider(
    settings: Optional[DifyProviderSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DifyProvider:
    """Create a Dify provider. Settings default to the DIFY_* environment."""
    return DifyProvider(settings=settings, transport=transport)


# Default provider instance; reads the environment when the first model is created
dify_provider = create_dify_provider()

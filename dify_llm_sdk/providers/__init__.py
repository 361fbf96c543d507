"""
Provider Adapters Layer

This layer contains the Dify language model implementation. The adapter
translates between the SDK's standardized interface and the Dify
chat-messages API.
"""

from .base import LanguageModel, ProviderError, StreamResult
from .errors import ErrorMapper, InvalidPromptError
from .dify import DifyChatLanguageModel, DifyProvider, create_dify_provider

__all__ = [
    "LanguageModel",
    "ProviderError",
    "StreamResult",
    "ErrorMapper",
    "InvalidPromptError",
    "DifyChatLanguageModel",
    "DifyProvider",
    "create_dify_provider",
]

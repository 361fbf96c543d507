"""
Dify LLM SDK - Dify chat applications behind a standardized language model interface.

This package adapts the Dify chat-messages API to:
- Blocking generation returning a GenerationResult
- Streaming generation yielding standardized stream parts
- Reasoning/answer splitting of ``<think>`` blocks in streamed answers
- Workflow and node execution telemetry attached to the finish part
"""

__version__ = "0.1.0"

from .config.settings import DifyChatSettings, DifyProviderSettings
from .models.conversation_types import ConversationMessage, FileContent, TextContent
from .models.conversation_types import TurnRole as ConversationRole
from .models.generation import CallOptions, GenerationResult, Usage
from .providers.base import ProviderError, StreamResult
from .providers.dify import (
    DifyChatLanguageModel,
    DifyProvider,
    create_dify_provider,
    dify_provider,
)
from .providers.errors import (
    AttachmentNotSupportedError,
    InvalidPromptError,
    LastMessageNotUserError,
    NoMessagesError,
    PromptErrorReason,
)

__all__ = [
    # Provider
    "DifyProvider",
    "DifyChatLanguageModel",
    "create_dify_provider",
    "dify_provider",

    # Settings
    "DifyProviderSettings",
    "DifyChatSettings",

    # Models
    "CallOptions",
    "ConversationMessage",
    "ConversationRole",
    "TextContent",
    "FileContent",
    "GenerationResult",
    "StreamResult",
    "Usage",

    # Errors
    "ProviderError",
    "InvalidPromptError",
    "NoMessagesError",
    "LastMessageNotUserError",
    "AttachmentNotSupportedError",
    "PromptErrorReason",
]

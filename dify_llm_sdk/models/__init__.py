"""Data models for Dify LLM SDK."""

from .generation import CallOptions, GenerationResult, ResponseInfo, Usage
from .conversation_types import (
    ContentPart,
    ConversationMessage,
    FileContent,
    TextContent,
    TurnRole as ConversationRole,
)
from .stream_parts import (
    ErrorPart,
    FinishPart,
    RawPart,
    ReasoningDeltaPart,
    ReasoningEndPart,
    ReasoningStartPart,
    ResponseMetadataPart,
    StreamPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)

__all__ = [
    # Generation models
    "CallOptions",
    "GenerationResult",
    "ResponseInfo",
    "Usage",

    # Conversation models
    "ContentPart",
    "ConversationMessage",
    "ConversationRole",
    "FileContent",
    "TextContent",

    # Stream parts
    "StreamPart",
    "ReasoningStartPart",
    "ReasoningDeltaPart",
    "ReasoningEndPart",
    "TextStartPart",
    "TextDeltaPart",
    "TextEndPart",
    "ResponseMetadataPart",
    "FinishPart",
    "ErrorPart",
    "RawPart",
]

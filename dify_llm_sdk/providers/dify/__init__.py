"""Dify chat provider."""

from .adapter import DifyChatLanguageModel, DifyModelConfig
from .parsers import map_completion_response
from .payloads import build_request_body, split_call_headers
from .provider import DifyProvider, create_dify_provider, dify_provider
from .schema import (
    CompletionResponse,
    DifyStreamEvent,
    DifyStreamEventBase,
    ErrorResponse,
    parse_stream_event,
)
from .streaming import StreamTranslator, stream_chat_messages, translate_lines

__all__ = [
    "DifyChatLanguageModel",
    "DifyModelConfig",
    "DifyProvider",
    "create_dify_provider",
    "dify_provider",
    "build_request_body",
    "split_call_headers",
    "map_completion_response",
    "CompletionResponse",
    "DifyStreamEvent",
    "DifyStreamEventBase",
    "ErrorResponse",
    "parse_stream_event",
    "StreamTranslator",
    "stream_chat_messages",
    "translate_lines",
]

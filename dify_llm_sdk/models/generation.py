from dataclasses import dataclass, field
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union

from .conversation_types import PromptMessage, TextContent


class Usage(BaseModel):
    """Token counters reported for one run.

    Any counter may be ``None`` when the upstream response does not carry it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_tokens: Optional[Union[int, float]] = None
    output_tokens: Optional[Union[int, float]] = None
    total_tokens: Optional[Union[int, float]] = None


class ResponseInfo(BaseModel):
    """Response-level information for a completed request."""

    id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
    headers: Dict[str, str] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """Result of a blocking (non-streaming) generation."""

    content: List[TextContent] = Field(default_factory=list)
    finish_reason: str = "stop"
    usage: Usage = Field(default_factory=Usage)
    warnings: List[str] = Field(default_factory=list)
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    request_body: Dict[str, Any] = Field(default_factory=dict)
    response: ResponseInfo = Field(default_factory=ResponseInfo)

    @property
    def text(self) -> str:
        """Concatenated text of all content blocks."""
        return "".join(block.text for block in self.content)


@dataclass
class CallOptions:
    """Per-call options for a language model request.

    Attributes:
        prompt: Ordered prompt messages; the last one must be a user message
        headers: Per-call headers. ``user-id`` and ``chat-id`` are consumed by
            the request builder and not forwarded upstream.
    """
    prompt: List[PromptMessage]
    headers: Dict[str, Optional[str]] = field(default_factory=dict)

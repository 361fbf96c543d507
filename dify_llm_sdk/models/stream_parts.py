"""Downstream stream part models.

This module defines the fixed vocabulary of parts a streamed generation
produces: start/delta/end triples for the reasoning and text channels,
response metadata, the terminal finish part, errors, and a raw passthrough
for upstream events without a first-class mapping.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .generation import Usage


@dataclass
class ReasoningStartPart:
    """Opens a reasoning block."""
    id: str
    type: str = field(default="reasoning-start", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class ReasoningDeltaPart:
    """Incremental reasoning content for an open block."""
    id: str
    delta: str
    type: str = field(default="reasoning-delta", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "delta": self.delta}


@dataclass
class ReasoningEndPart:
    """Closes a reasoning block."""
    id: str
    type: str = field(default="reasoning-end", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class TextStartPart:
    """Opens the answer text channel."""
    id: str
    type: str = field(default="text-start", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class TextDeltaPart:
    """Incremental answer text."""
    id: str
    delta: str
    type: str = field(default="text-delta", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "delta": self.delta}


@dataclass
class TextEndPart:
    """Closes the answer text channel."""
    id: str
    type: str = field(default="text-end", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}


@dataclass
class ResponseMetadataPart:
    """Identifies a response (or a workflow node) and when it was observed."""
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    type: str = field(default="response-metadata", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class FinishPart:
    """Terminal part carrying usage counters and provider metadata."""
    usage: Usage
    finish_reason: str = "stop"
    provider_metadata: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    type: str = field(default="finish", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "finishReason": self.finish_reason,
            "usage": self.usage.model_dump(by_alias=True),
            "providerMetadata": self.provider_metadata,
        }


@dataclass
class ErrorPart:
    """A validation or transport failure surfaced in-stream."""
    error: Exception
    type: str = field(default="error", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "errorType": type(self.error).__name__,
            "errorText": str(self.error),
        }


@dataclass
class RawPart:
    """Passthrough of an upstream event, tagged with ``difyEvent``."""
    raw_value: Dict[str, Any]
    type: str = field(default="raw", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "rawValue": self.raw_value}


StreamPart = Union[
    ReasoningStartPart,
    ReasoningDeltaPart,
    ReasoningEndPart,
    TextStartPart,
    TextDeltaPart,
    TextEndPart,
    ResponseMetadataPart,
    FinishPart,
    ErrorPart,
    RawPart,
]

"""Dify API response and stream event schemas.

Stream events form a tagged union on the ``event`` field with a catch-all
base shape. Every model allows extra fields so that unknown or
forward-compatible keys survive validation and reappear in ``model_dump()``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ...streaming.types import ParseResult


logger = logging.getLogger(__name__)

Number = Union[int, float]


class _Passthrough(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Blocking-mode responses
# ---------------------------------------------------------------------------

class CompletionUsage(_Passthrough):
    completion_tokens: Number
    prompt_tokens: Number
    total_tokens: Number


class CompletionMetadata(_Passthrough):
    usage: CompletionUsage


class CompletionResponse(_Passthrough):
    """Body of a blocking ``chat-messages`` response."""
    id: str
    answer: str
    task_id: str
    conversation_id: str
    message_id: str
    metadata: CompletionMetadata


class ErrorResponse(_Passthrough):
    """Body of a failed request."""
    code: str
    message: str
    status: Number


# ---------------------------------------------------------------------------
# Streaming events
# ---------------------------------------------------------------------------

class DifyStreamEventBase(_Passthrough):
    """Fields common to every stream event; also the fallback shape."""
    event: str
    conversation_id: Optional[str] = None
    message_id: Optional[str] = None
    task_id: Optional[str] = None
    created_at: Optional[Number] = None


class CreatedBy(_Passthrough):
    id: str
    user: str


class WorkflowStartedData(_Passthrough):
    id: str
    workflow_id: str
    created_at: Number
    inputs: Dict[str, Any]


class WorkflowFinishedData(_Passthrough):
    id: str
    workflow_id: str
    total_tokens: Number
    created_at: Number
    status: str
    outputs: Dict[str, Any]
    error: str
    elapsed_time: Number
    total_steps: Number
    created_by: CreatedBy
    finished_at: Number
    exceptions_count: Number
    files: List[Any]


class _NodeDataBase(_Passthrough):
    id: str
    node_id: str
    node_type: str
    title: str
    index: Number
    predecessor_node_id: Optional[str]
    inputs: Optional[Dict[str, Any]]
    created_at: Number
    parallel_id: Optional[str]
    parallel_start_node_id: Optional[str]
    parent_parallel_id: Optional[str]
    parent_parallel_start_node_id: Optional[str]
    iteration_id: Optional[str]
    loop_id: Optional[str]


class NodeStartedData(_NodeDataBase):
    extras: Dict[str, Any]
    parallel_run_id: Optional[str]
    agent_strategy: Optional[Any]


class NodeFinishedData(_NodeDataBase):
    process_data: Optional[Any]
    outputs: Optional[Dict[str, Any]]
    status: str
    error: Optional[str]
    elapsed_time: Number
    execution_metadata: Optional[Dict[str, Any]]
    finished_at: Number
    files: List[Any]


class WorkflowStartedEvent(DifyStreamEventBase):
    event: Literal["workflow_started"]
    workflow_run_id: str
    data: WorkflowStartedData


class WorkflowFinishedEvent(DifyStreamEventBase):
    event: Literal["workflow_finished"]
    workflow_run_id: str
    data: WorkflowFinishedData


class NodeStartedEvent(DifyStreamEventBase):
    event: Literal["node_started"]
    workflow_run_id: str
    data: NodeStartedData


class NodeFinishedEvent(DifyStreamEventBase):
    event: Literal["node_finished"]
    workflow_run_id: str
    data: NodeFinishedData


class MessageEvent(DifyStreamEventBase):
    event: Literal["message"]
    id: Optional[str] = None
    answer: str
    from_variable_selector: Optional[List[str]] = None


class MessageEndUsage(_Passthrough):
    prompt_tokens: Number
    completion_tokens: Number
    total_tokens: Number
    prompt_unit_price: str
    prompt_price_unit: str
    prompt_price: str
    completion_unit_price: str
    completion_price_unit: str
    completion_price: str
    total_price: str
    currency: str
    latency: Number


class MessageEndMetadata(_Passthrough):
    usage: MessageEndUsage
    annotation_reply: Optional[Any]
    retriever_resources: List[Any]


class MessageEndEvent(DifyStreamEventBase):
    event: Literal["message_end"]
    id: str
    metadata: MessageEndMetadata
    files: List[Any]
    quoteInfo: Dict[str, Any]


class TtsMessageEvent(DifyStreamEventBase):
    event: Literal["tts_message"]
    audio: str


class TtsMessageEndEvent(DifyStreamEventBase):
    event: Literal["tts_message_end"]
    audio: str


class PingEvent(DifyStreamEventBase):
    event: Literal["ping"]


class AgentMessageEvent(DifyStreamEventBase):
    event: Literal["agent_message"]
    answer: str


class AgentThoughtEvent(DifyStreamEventBase):
    event: Literal["agent_thought"]
    thought: str
    observation: str
    tool: str
    tool_labels: Dict[str, str]
    tool_input: str
    message_files: List[Any]


DifyStreamEvent = Union[
    WorkflowStartedEvent,
    WorkflowFinishedEvent,
    NodeStartedEvent,
    NodeFinishedEvent,
    MessageEvent,
    MessageEndEvent,
    TtsMessageEvent,
    TtsMessageEndEvent,
    AgentThoughtEvent,
    AgentMessageEvent,
    PingEvent,
    DifyStreamEventBase,
]

EVENT_MODELS: Dict[str, Type[DifyStreamEventBase]] = {
    "workflow_started": WorkflowStartedEvent,
    "workflow_finished": WorkflowFinishedEvent,
    "node_started": NodeStartedEvent,
    "node_finished": NodeFinishedEvent,
    "message": MessageEvent,
    "message_end": MessageEndEvent,
    "tts_message": TtsMessageEvent,
    "tts_message_end": TtsMessageEndEvent,
    "agent_thought": AgentThoughtEvent,
    "agent_message": AgentMessageEvent,
    "ping": PingEvent,
}


def parse_stream_event(raw: Any) -> ParseResult[DifyStreamEvent]:
    """Validate one decoded stream element. Never raises.

    Known event kinds are validated against their own shape first. An element
    that does not fit its kind's shape, or whose kind is unknown, is validated
    against the common base shape instead, so only elements that are not
    event objects at all fail.
    """
    kind = raw.get("event") if isinstance(raw, dict) else None
    model = EVENT_MODELS.get(kind) if isinstance(kind, str) else None
    if model is not None:
        try:
            return ParseResult.ok(model.model_validate(raw), raw_value=raw)
        except ValidationError as e:
            logger.debug(
                "Event %s does not match its schema (%d errors), using base shape",
                kind, e.error_count(),
            )
            strict_error = e
    else:
        strict_error = None

    try:
        return ParseResult.ok(DifyStreamEventBase.model_validate(raw), raw_value=raw)
    except ValidationError as e:
        return ParseResult.fail(strict_error or e, raw_value=raw)


def parse_error_response(raw: Any) -> Optional[ErrorResponse]:
    """Validate an error body, returning ``None`` if it has another shape."""
    try:
        return ErrorResponse.model_validate(raw)
    except ValidationError:
        return None

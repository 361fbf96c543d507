"""Translation of Dify stream events into downstream stream parts.

``StreamTranslator`` owns all per-stream state: the run identifiers, the
reasoning/answer splitter and the workflow telemetry ledger. It is fed one
validated element at a time and returns the parts that element produces, so
the surrounding pipeline stays a single pass over the event stream.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, AsyncIterable, Callable, Dict, List, Optional

import httpx

from ...config.constants import FINISH_REASON_STOP, PROVIDER_METADATA_KEY
from ...models.generation import Usage
from ...models.stream_parts import (
    ErrorPart,
    FinishPart,
    RawPart,
    ResponseMetadataPart,
    StreamPart,
)
from ...observability.logging import ProviderLogger
from ...streaming.reasoning import ReasoningSplitter, generate_block_id
from ...streaming.sse import iter_sse_json
from ...streaming.telemetry import WorkflowTelemetry
from ...streaming.types import ParseResult
from ..errors import ErrorMapper
from .schema import DifyStreamEvent, parse_stream_event


logger = ProviderLogger("dify")


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _number(mapping: Dict[str, Any], key: str) -> Optional[float]:
    value = mapping.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _string(mapping: Dict[str, Any], key: str) -> Optional[str]:
    value = mapping.get(key)
    return value if isinstance(value, str) and value else None


def _timestamp(seconds: Optional[float]) -> Optional[datetime]:
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _raw(kind: str, payload: Dict[str, Any], **extra: Any) -> RawPart:
    fields = {key: value for key, value in extra.items() if value is not None}
    return RawPart(raw_value={"difyEvent": kind, **fields, **payload})


class StreamTranslator:
    """Stateful event-to-part translator for one streamed request.

    Identifiers (conversation, message, task) are captured from every event
    before dispatch; the first non-empty value of each wins. Unknown event
    kinds are passed through as raw parts. Anomalies such as a node finishing
    without a start or a reasoning block still open at message end are
    tolerated rather than reported.
    """

    def __init__(self, id_generator: Callable[[], str] = generate_block_id):
        self.conversation_id: Optional[str] = None
        self.message_id: Optional[str] = None
        self.task_id: Optional[str] = None

        self.splitter = ReasoningSplitter(id_generator=id_generator)
        self.telemetry = WorkflowTelemetry()

        self.finish_parts = 0
        self.error_parts = 0

        self._handlers = {
            "workflow_started": self._on_workflow_started,
            "workflow_finished": self._on_workflow_finished,
            "node_started": self._on_node_started,
            "node_finished": self._on_node_finished,
            "message": self._on_message,
            "agent_message": self._on_message,
            "agent_thought": self._on_agent_thought,
            "message_end": self._on_message_end,
        }

    def process(self, result: ParseResult[DifyStreamEvent]) -> List[StreamPart]:
        """Translate one validated (or failed) stream element."""
        if not result.success:
            self.error_parts += 1
            return [ErrorPart(error=result.error)]

        event = result.value
        # Raw parts carry the payload as received, not the validated copy
        payload = result.raw_value
        if not isinstance(payload, dict):
            payload = event.model_dump(exclude_unset=True)
        self._capture_ids(payload)

        handler = self._handlers.get(event.event, self._on_passthrough)
        parts = handler(event.event, payload)
        self.finish_parts += sum(1 for part in parts if isinstance(part, FinishPart))
        return parts

    def _capture_ids(self, payload: Dict[str, Any]) -> None:
        if self.conversation_id is None:
            self.conversation_id = _string(payload, "conversation_id")
        if self.message_id is None:
            self.message_id = _string(payload, "message_id")
        if self.task_id is None:
            self.task_id = _string(payload, "task_id")

    def provider_metadata(self) -> Dict[str, Dict[str, Any]]:
        """Metadata bag attached to finish parts."""
        report = self.telemetry.build_report()
        return {
            PROVIDER_METADATA_KEY: {
                "conversationId": self.conversation_id,
                "messageId": self.message_id,
                "taskId": self.task_id,
                "workflowExecution": report.model_dump(by_alias=True) if report else None,
            }
        }

    def _finish(self, usage: Usage) -> FinishPart:
        return FinishPart(
            usage=usage,
            finish_reason=FINISH_REASON_STOP,
            provider_metadata=self.provider_metadata(),
        )

    # -- workflow -----------------------------------------------------------

    def _on_workflow_started(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        data = _mapping(payload.get("data"))
        run_id = _string(payload, "workflow_run_id")
        created_at = _number(data, "created_at")
        self.telemetry.on_workflow_started(_string(data, "workflow_id"), run_id, created_at)

        parts: List[StreamPart] = []
        if created_at is not None:
            parts.append(ResponseMetadataPart(id=run_id, timestamp=_timestamp(created_at)))
        parts.append(_raw(kind, payload))
        return parts

    def _on_workflow_finished(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        data = _mapping(payload.get("data"))
        finished_at = _number(data, "finished_at")
        total_tokens = _number(data, "total_tokens")
        self.telemetry.on_workflow_finished(finished_at, total_tokens)

        parts: List[StreamPart] = []
        if finished_at is not None:
            parts.append(ResponseMetadataPart(
                id=_string(payload, "workflow_run_id"),
                timestamp=_timestamp(finished_at),
            ))
        parts.append(_raw(kind, payload, duration=_number(data, "elapsed_time")))

        # Channels stay open; message_end closes them
        tokens = total_tokens or 0
        parts.append(self._finish(Usage(input_tokens=0, output_tokens=tokens, total_tokens=tokens)))
        return parts

    def _on_node_started(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        data = _mapping(payload.get("data"))
        node_id = _string(data, "node_id")
        started_at = _number(payload, "created_at")
        if started_at is None:
            started_at = _number(data, "created_at")

        parts: List[StreamPart] = []
        if node_id:
            self.telemetry.on_node_started(node_id, _string(data, "node_type"), started_at)
            if started_at is not None:
                parts.append(ResponseMetadataPart(id=f"node-{node_id}", timestamp=_timestamp(started_at)))
        parts.append(_raw(kind, payload))
        return parts

    def _on_node_finished(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        data = _mapping(payload.get("data"))
        node_id = _string(data, "node_id")
        finished_at = _number(payload, "created_at")
        if finished_at is None:
            finished_at = _number(data, "finished_at")

        parts: List[StreamPart] = []
        duration = None
        if node_id:
            record = self.telemetry.on_node_finished(node_id, finished_at)
            if record is not None:
                duration = record.duration
            if finished_at is not None:
                parts.append(ResponseMetadataPart(id=f"node-{node_id}", timestamp=_timestamp(finished_at)))
        parts.append(_raw(kind, payload, duration=duration))
        return parts

    # -- conversation -------------------------------------------------------

    def _on_message(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        answer = payload.get("answer")
        if not isinstance(answer, str):
            return []

        parts = self.splitter.feed(answer)
        if kind == "agent_message":
            message_id = _string(payload, "id")
            if message_id:
                parts.append(ResponseMetadataPart(
                    id=message_id,
                    timestamp=_timestamp(_number(payload, "created_at")),
                ))
        return parts

    def _on_agent_thought(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        parts: List[StreamPart] = []
        thought_id = _string(payload, "id")
        created_at = _number(payload, "created_at")
        if thought_id and created_at is not None:
            parts.append(ResponseMetadataPart(id=thought_id, timestamp=_timestamp(created_at)))
        parts.append(_raw(kind, payload))
        return parts

    def _on_message_end(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        parts: List[StreamPart] = self.splitter.close_text()
        if self.splitter.in_reasoning:
            logger.debug("message_end received inside an open reasoning block")

        usage = _mapping(_mapping(payload.get("metadata")).get("usage"))
        data_tokens = _number(_mapping(payload.get("data")), "total_tokens")

        # An explicit data.total_tokens wins over metadata.usage
        if data_tokens is not None:
            output_tokens = data_tokens
            total_tokens = data_tokens
        else:
            output_tokens = 0
            total_tokens = _number(usage, "total_tokens")

        parts.append(self._finish(Usage(
            input_tokens=_number(usage, "prompt_tokens"),
            output_tokens=output_tokens,
            total_tokens=total_tokens,
        )))
        return parts

    def _on_passthrough(self, kind: str, payload: Dict[str, Any]) -> List[StreamPart]:
        return [_raw(kind, payload)]


async def translate_lines(
    lines: AsyncIterable[str],
    translator: StreamTranslator,
) -> AsyncGenerator[StreamPart, None]:
    """Decode, validate and translate an SSE line stream element by element."""
    async for decoded in iter_sse_json(lines):
        result = parse_stream_event(decoded.value) if decoded.success else decoded
        for part in translator.process(result):
            yield part


async def stream_chat_messages(
    response: httpx.Response,
    translator: StreamTranslator,
    model: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AsyncGenerator[StreamPart, None]:
    """Yield stream parts from an open streaming response.

    A transport failure while reading becomes a final error part. The
    response is closed when the generator finishes or is closed early; parts
    already emitted are not followed by synthetic channel closes.
    """
    parts = 0
    start_time = time.time()
    try:
        async for part in translate_lines(response.aiter_lines(), translator):
            parts += 1
            if isinstance(part, FinishPart):
                logger.log_usage(
                    part.usage.model_dump(),
                    model=model,
                    request_id=request_id,
                )
            yield part
    except httpx.HTTPError as e:
        error = ErrorMapper.map_dify_error(e)
        logger.error(
            "Stream interrupted",
            model=model,
            request_id=request_id,
            error=e,
            **ErrorMapper.get_error_classification(error),
        )
        yield ErrorPart(error=error)
    finally:
        await response.aclose()
        logger.log_streaming_metrics(
            parts=parts,
            duration=time.time() - start_time,
            model=model,
            request_id=request_id,
            finish_parts=translator.finish_parts,
            error_parts=translator.error_parts,
        )

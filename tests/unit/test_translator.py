"""Unit tests for the Dify stream translator."""

from datetime import datetime, timezone

import pytest

from dify_llm_sdk.models.stream_parts import (
    ErrorPart,
    FinishPart,
    RawPart,
    ResponseMetadataPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)
from dify_llm_sdk.providers.dify.schema import parse_stream_event
from dify_llm_sdk.providers.dify.streaming import StreamTranslator, translate_lines
from dify_llm_sdk.streaming.sse import SSEDecodeError
from tests.helpers import dify_events as ev


def run(translator, events):
    parts = []
    for raw in events:
        parts.extend(translator.process(parse_stream_event(raw)))
    return parts


def of_type(parts, cls):
    return [part for part in parts if isinstance(part, cls)]


@pytest.mark.unit
class TestConversationEvents:

    def test_think_split_then_message_end(self, translator):
        parts = run(translator, [
            ev.message("<think>\nfoo"),
            ev.message("bar\n</think>baz"),
            ev.message_end(),
        ])

        assert [p.type for p in parts] == [
            "reasoning-start", "reasoning-delta", "reasoning-delta", "reasoning-end",
            "text-start", "text-delta", "text-end", "finish",
        ]
        assert parts[1].delta == "foo"
        assert parts[2].delta == "bar"
        assert parts[5] == TextDeltaPart(id="answer", delta="baz")

    def test_message_end_usage_from_metadata(self, translator):
        (finish,) = run(translator, [ev.message_end(ev.usage(prompt_tokens=7, total_tokens=12))])

        assert finish.finish_reason == "stop"
        assert finish.usage.input_tokens == 7
        assert finish.usage.output_tokens == 0
        assert finish.usage.total_tokens == 12

    def test_message_end_prefers_data_total_tokens(self, translator):
        (finish,) = run(translator, [ev.message_end(data={"total_tokens": 30})])

        assert finish.usage.input_tokens == 7
        assert finish.usage.output_tokens == 30
        assert finish.usage.total_tokens == 30

    def test_fractional_token_counts_do_not_break_the_stream(self, translator):
        parts = run(translator, [
            ev.message("hi"),
            ev.message_end(ev.usage(prompt_tokens=7.5, total_tokens=12.25)),
            ev.message("after"),
        ])

        finish = of_type(parts, FinishPart)[0]
        assert finish.usage.input_tokens == 7.5
        assert finish.usage.total_tokens == 12.25
        assert of_type(parts, ErrorPart) == []
        assert parts[-1] == TextDeltaPart(id="answer", delta="after")

    def test_fractional_data_total_tokens(self, translator):
        (finish,) = run(translator, [ev.message_end(data={"total_tokens": 42.5})])

        assert finish.usage.output_tokens == 42.5
        assert finish.usage.total_tokens == 42.5

    def test_message_end_without_text_has_no_text_end(self, translator):
        parts = run(translator, [ev.message_end()])

        assert [p.type for p in parts] == ["finish"]

    def test_message_end_with_open_reasoning_is_tolerated(self, translator):
        parts = run(translator, [ev.message("<think>\nstill going"), ev.message_end()])

        assert [p.type for p in parts] == ["reasoning-start", "reasoning-delta", "finish"]
        assert translator.splitter.in_reasoning

    def test_finish_metadata_carries_ids(self, translator):
        (finish,) = run(translator, [ev.message_end()])

        assert finish.provider_metadata == {
            "difyWorkflowData": {
                "conversationId": ev.CONVERSATION_ID,
                "messageId": ev.MESSAGE_ID,
                "taskId": ev.TASK_ID,
                "workflowExecution": None,
            }
        }

    def test_first_identifier_wins(self, translator):
        run(translator, [
            ev.message("a", conversation_id="first", message_id="m-first", task_id=None),
            ev.message("b", conversation_id="second", message_id="m-second", task_id="t-late"),
        ])

        assert translator.conversation_id == "first"
        assert translator.message_id == "m-first"
        assert translator.task_id == "t-late"

    def test_empty_identifiers_do_not_count(self, translator):
        run(translator, [
            ev.message("a", conversation_id=""),
            ev.message("b", conversation_id="real"),
        ])

        assert translator.conversation_id == "real"

    def test_agent_message_with_id_adds_metadata(self, translator):
        parts = run(translator, [ev.agent_message("hi", id="agent-msg-1")])

        assert [p.type for p in parts] == ["text-start", "text-delta", "response-metadata"]
        assert parts[2].id == "agent-msg-1"
        assert parts[2].timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_agent_message_without_id(self, translator):
        parts = run(translator, [ev.agent_message("hi")])

        assert [p.type for p in parts] == ["text-start", "text-delta"]

    def test_agent_thought(self, translator):
        parts = run(translator, [ev.agent_thought("search docs")])

        assert parts[0] == ResponseMetadataPart(
            id="thought-1",
            timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        )
        assert parts[1].raw_value["difyEvent"] == "agent_thought"
        assert parts[1].raw_value["thought"] == "search docs"

    def test_empty_answer_produces_nothing(self, translator):
        assert run(translator, [ev.message("")]) == []


@pytest.mark.unit
class TestWorkflowEvents:

    def test_workflow_started(self, translator):
        metadata, raw = run(translator, [ev.workflow_started(created_at=1700000000)])

        assert metadata == ResponseMetadataPart(
            id=ev.RUN_ID,
            timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        )
        assert raw.raw_value["difyEvent"] == "workflow_started"
        assert raw.raw_value["workflow_run_id"] == ev.RUN_ID
        assert translator.telemetry.workflow_id == ev.WORKFLOW_ID

    def test_node_lifecycle(self, translator):
        parts = run(translator, [
            ev.workflow_started(),
            ev.node_started("n1", "llm", created_at=1700000001),
            ev.node_finished("n1", "llm", created_at=1700000001, finished_at=1700000004),
        ])

        node_metadata = [p for p in of_type(parts, ResponseMetadataPart) if p.id == "node-n1"]
        assert len(node_metadata) == 2

        raw_finish = of_type(parts, RawPart)[-1]
        assert raw_finish.raw_value["difyEvent"] == "node_finished"
        assert raw_finish.raw_value["duration"] == 3
        assert raw_finish.raw_value["data"]["node_id"] == "n1"

    def test_node_started_falls_back_to_data_timestamp(self, translator):
        raw = ev.node_started("n1", created_at=1700000002)
        del raw["created_at"]

        metadata, _ = run(translator, [raw])

        assert metadata.timestamp == datetime.fromtimestamp(1700000002, tz=timezone.utc)
        assert translator.telemetry.nodes["n1"].started_at == 1700000002

    def test_node_finished_for_unknown_node(self, translator):
        parts = run(translator, [ev.node_finished("ghost")])

        assert [p.type for p in parts] == ["response-metadata", "raw"]
        assert "duration" not in parts[1].raw_value
        assert of_type(parts, ErrorPart) == []

    def test_workflow_finished_emits_finish_with_report(self, translator):
        parts = run(translator, [
            ev.workflow_started(created_at=1700000000),
            ev.node_started("n1", "llm", created_at=1700000001),
            ev.node_finished("n1", "llm", created_at=1700000001, finished_at=1700000004),
            ev.message("answer"),
            ev.workflow_finished(finished_at=1700000010, total_tokens=42, elapsed_time=10.0),
        ])

        raw = of_type(parts, RawPart)[-1]
        assert raw.raw_value["difyEvent"] == "workflow_finished"
        assert raw.raw_value["duration"] == 10.0

        finish = parts[-1]
        assert isinstance(finish, FinishPart)
        assert finish.usage.input_tokens == 0
        assert finish.usage.output_tokens == 42
        assert finish.usage.total_tokens == 42

        execution = finish.provider_metadata["difyWorkflowData"]["workflowExecution"]
        assert execution["workflowId"] == ev.WORKFLOW_ID
        assert execution["workflowRunId"] == ev.RUN_ID
        assert execution["duration"] == 10
        assert execution["totalTokens"] == 42
        assert execution["nodes"] == [{
            "nodeId": "n1",
            "nodeType": "llm",
            "startedAt": 1700000001,
            "finishedAt": 1700000004,
            "duration": 3,
        }]

        # The answer channel stays open until message_end
        assert of_type(parts, TextEndPart) == []
        assert translator.splitter.text_open

    def test_workflow_then_message_end(self, translator):
        parts = run(translator, [
            ev.workflow_started(),
            ev.message("hi"),
            ev.workflow_finished(),
            ev.message_end(),
        ])

        assert [p.type for p in parts[-3:]] == ["finish", "text-end", "finish"]
        assert translator.finish_parts == 2
        first, second = of_type(parts, FinishPart)
        report = second.provider_metadata["difyWorkflowData"]["workflowExecution"]
        assert report["finishedAt"] == 1700000010
        assert first.provider_metadata["difyWorkflowData"]["workflowExecution"] == report

    def test_workflow_finished_without_start(self, translator):
        parts = run(translator, [ev.workflow_finished()])

        finish = parts[-1]
        assert isinstance(finish, FinishPart)
        assert finish.provider_metadata["difyWorkflowData"]["workflowExecution"] is None

    def test_malformed_workflow_finished_still_finishes(self, translator):
        raw = ev.workflow_finished(total_tokens=9)
        raw["data"]["files"] = None

        parts = run(translator, [raw])

        assert parts[-1].usage.total_tokens == 9
        assert of_type(parts, ErrorPart) == []


@pytest.mark.unit
class TestPassthroughAndErrors:

    def test_unknown_event_becomes_raw(self, translator):
        (part,) = run(translator, [{"event": "foo_bar", "payload": 1}])

        assert part == RawPart(raw_value={"difyEvent": "foo_bar", "event": "foo_bar", "payload": 1})

    def test_raw_value_keeps_payload_as_received(self, translator):
        raw = {"event": "foo_bar", "created_at": "1700000000", "x": 1}

        (part,) = run(translator, [raw])

        assert part.raw_value == {"difyEvent": "foo_bar", **raw}
        assert part.raw_value["created_at"] == "1700000000"

    def test_raw_value_keeps_float_token_counts(self, translator):
        raw = ev.workflow_finished(total_tokens=42.0)

        raw_part = of_type(run(translator, [raw]), RawPart)[0]

        assert raw_part.raw_value["data"] == raw["data"]
        assert isinstance(raw_part.raw_value["data"]["total_tokens"], float)

    @pytest.mark.parametrize("raw", [
        ev.ping(),
        {"event": "tts_message", "audio": "AAAA"},
        {"event": "tts_message_end", "audio": ""},
    ])
    def test_known_passthrough_kinds(self, translator, raw):
        (part,) = run(translator, [raw])

        assert isinstance(part, RawPart)
        assert part.raw_value["difyEvent"] == raw["event"]

    def test_validation_failure_becomes_error_and_stream_continues(self, translator):
        parts = run(translator, [{"no": "event"}, ev.message("after")])

        assert isinstance(parts[0], ErrorPart)
        assert [p.type for p in parts[1:]] == ["text-start", "text-delta"]
        assert translator.error_parts == 1

    def test_error_part_serialization(self, translator):
        (part,) = run(translator, [42])

        dumped = part.to_dict()
        assert dumped["type"] == "error"
        assert dumped["errorType"] == "ValidationError"


@pytest.mark.unit
class TestTranslateLines:

    @pytest.mark.asyncio
    async def test_lines_to_parts(self, translator):
        lines = ev.sse_lines([ev.message("Hello"), ev.message(" world"), ev.message_end()])

        parts = await ev.collect(translate_lines(ev.aiter_lines(lines), translator))

        assert parts[:3] == [
            TextStartPart(id="answer"),
            TextDeltaPart(id="answer", delta="Hello"),
            TextDeltaPart(id="answer", delta=" world"),
        ]
        assert [p.type for p in parts[3:]] == ["text-end", "finish"]

    @pytest.mark.asyncio
    async def test_invalid_json_becomes_error_part(self, translator):
        lines = ev.sse_lines(["{broken", ev.message("ok")])

        parts = await ev.collect(translate_lines(ev.aiter_lines(lines), translator))

        assert isinstance(parts[0], ErrorPart)
        assert isinstance(parts[0].error, SSEDecodeError)
        assert parts[-1] == TextDeltaPart(id="answer", delta="ok")

"""Unit tests for Dify event validation."""

import pytest
from pydantic import ValidationError

from dify_llm_sdk.providers.dify.schema import (
    DifyStreamEventBase,
    MessageEndEvent,
    MessageEvent,
    NodeStartedEvent,
    PingEvent,
    WorkflowFinishedEvent,
    parse_error_response,
    parse_stream_event,
)
from tests.helpers import dify_events as ev


@pytest.mark.unit
class TestParseStreamEvent:
    """Test tagged-union validation of stream elements."""

    @pytest.mark.parametrize("raw, model", [
        (ev.message("hi"), MessageEvent),
        (ev.message_end(), MessageEndEvent),
        (ev.node_started("n1"), NodeStartedEvent),
        (ev.workflow_finished(), WorkflowFinishedEvent),
        (ev.ping(), PingEvent),
    ])
    def test_known_kinds_validate_strictly(self, raw, model):
        result = parse_stream_event(raw)

        assert result.success
        assert type(result.value) is model
        assert result.raw_value is raw

    def test_unknown_kind_uses_base_shape(self):
        result = parse_stream_event({"event": "foo_bar", "task_id": "t1", "extra": 1})

        assert result.success
        assert type(result.value) is DifyStreamEventBase
        assert result.value.event == "foo_bar"
        assert result.value.task_id == "t1"

    def test_extra_fields_are_preserved(self):
        raw = ev.message("hi", brand_new_field={"nested": [1, 2]})

        result = parse_stream_event(raw)

        dumped = result.value.model_dump(exclude_unset=True)
        assert dumped["brand_new_field"] == {"nested": [1, 2]}
        assert dumped["answer"] == "hi"

    def test_malformed_known_kind_falls_back_to_base(self):
        raw = ev.workflow_finished()
        raw["data"]["files"] = None

        result = parse_stream_event(raw)

        assert result.success
        assert type(result.value) is DifyStreamEventBase
        assert result.value.model_dump(exclude_unset=True)["data"]["files"] is None

    @pytest.mark.parametrize("raw", [
        None,
        "not an event",
        [1, 2, 3],
        {"answer": "no kind"},
        {"event": 12},
    ])
    def test_non_events_fail_without_raising(self, raw):
        result = parse_stream_event(raw)

        assert not result.success
        assert isinstance(result.error, ValidationError)
        assert result.raw_value is raw

    def test_ids_on_base_shape(self):
        result = parse_stream_event({"event": "tts_message_end", "conversation_id": "c", "message_id": "m"})

        assert result.success
        assert result.value.conversation_id == "c"
        assert result.value.message_id == "m"


@pytest.mark.unit
class TestParseErrorResponse:

    def test_valid_error_body(self):
        error = parse_error_response({"code": "invalid_param", "message": "bad query", "status": 400})

        assert error.code == "invalid_param"
        assert error.message == "bad query"
        assert error.status == 400

    def test_other_shapes_return_none(self):
        assert parse_error_response({"detail": "nope"}) is None
        assert parse_error_response("text") is None

"""Unit tests for blocking response mapping."""

import pytest

from dify_llm_sdk.providers.dify.parsers import map_completion_response
from dify_llm_sdk.providers.dify.schema import CompletionResponse
from tests.helpers import dify_events as ev


@pytest.mark.unit
class TestMapCompletionResponse:

    def test_maps_answer_usage_and_ids(self):
        response = CompletionResponse.model_validate(ev.completion_response("Hello there"))

        result = map_completion_response(response, {"query": "hi"}, {"x-request-id": "r1"})

        assert result.text == "Hello there"
        assert len(result.content) == 1
        assert result.finish_reason == "stop"
        assert result.usage.input_tokens == 7
        assert result.usage.output_tokens == 5
        assert result.usage.total_tokens == 12
        assert result.provider_metadata == {
            "difyWorkflowData": {"conversationId": ev.CONVERSATION_ID, "messageId": ev.MESSAGE_ID}
        }
        assert result.request_body == {"query": "hi"}
        assert result.response.id == ev.MESSAGE_ID
        assert result.response.headers == {"x-request-id": "r1"}

    def test_empty_answer_has_no_content(self):
        response = CompletionResponse.model_validate(ev.completion_response(""))

        result = map_completion_response(response)

        assert result.content == []
        assert result.text == ""
        assert result.usage.total_tokens == 12

    def test_reasoning_markers_are_kept_verbatim(self):
        answer = "<think>\nponder\n</think>42"
        response = CompletionResponse.model_validate(ev.completion_response(answer))

        result = map_completion_response(response)

        assert result.text == answer

    def test_fractional_usage_is_accepted(self):
        payload = ev.completion_response(
            metadata={"usage": {"prompt_tokens": 7.5, "completion_tokens": 5, "total_tokens": 12.5}},
        )
        response = CompletionResponse.model_validate(payload)

        result = map_completion_response(response)

        assert result.usage.input_tokens == 7.5
        assert result.usage.output_tokens == 5
        assert result.usage.total_tokens == 12.5

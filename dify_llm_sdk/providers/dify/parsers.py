"""
Response mapping for blocking-mode Dify requests.
"""

from typing import Any, Dict, List, Optional

from ...config.constants import FINISH_REASON_STOP, PROVIDER_METADATA_KEY
from ...models.conversation_types import TextContent
from ...models.generation import GenerationResult, ResponseInfo, Usage
from .schema import CompletionResponse


def map_completion_response(
    response: CompletionResponse,
    request_body: Optional[Dict[str, Any]] = None,
    response_headers: Optional[Dict[str, str]] = None,
) -> GenerationResult:
    """
    Map a blocking chat-messages response to a GenerationResult.

    The answer is returned verbatim; reasoning markers are not split out in
    this mode.
    """
    content: List[TextContent] = []
    if response.answer:
        content.append(TextContent(text=response.answer))

    usage = response.metadata.usage
    return GenerationResult(
        content=content,
        finish_reason=FINISH_REASON_STOP,
        usage=Usage(
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
        ),
        provider_metadata={
            PROVIDER_METADATA_KEY: {
                "conversationId": response.conversation_id,
                "messageId": response.message_id,
            }
        },
        request_body=request_body or {},
        response=ResponseInfo(id=response.id, headers=response_headers or {}),
    )

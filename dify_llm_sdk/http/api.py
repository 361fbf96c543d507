"""FastAPI HTTP endpoints for Dify LLM SDK.

This module exposes a Dify application over HTTP. It requires FastAPI to be
installed (via the 'http' extra).
"""

import json
from typing import Any, Dict, List, Optional

try:
    from fastapi import APIRouter, Depends, HTTPException
    from fastapi.responses import StreamingResponse
except ImportError:
    raise ImportError(
        "FastAPI is required for HTTP endpoints. "
        "Please install with: pip install dify-llm-sdk[http]"
    )

from pydantic import BaseModel, Field

from ..config.constants import CHAT_ID_HEADER, USER_ID_HEADER
from ..config.settings import DifyChatSettings
from ..models.conversation_types import ConversationMessage
from ..models.generation import CallOptions
from ..providers.base import ProviderError
from ..providers.dify import DifyProvider, dify_provider
from ..providers.errors import InvalidPromptError


class ChatRequest(BaseModel):
    """Body of the chat endpoints."""
    app_id: str
    messages: List[ConversationMessage] = Field(..., min_length=1)
    user_id: Optional[str] = None
    chat_id: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)
    api_key: Optional[str] = None


# Create router instance
router = APIRouter()


def get_provider() -> DifyProvider:
    """Provider used by the endpoints; override in tests or applications."""
    return dify_provider


def _options(request: ChatRequest) -> CallOptions:
    return CallOptions(
        prompt=list(request.messages),
        headers={USER_ID_HEADER: request.user_id, CHAT_ID_HEADER: request.chat_id},
    )


def _http_error(error: Exception) -> HTTPException:
    if isinstance(error, InvalidPromptError):
        return HTTPException(status_code=400, detail={"reason": error.reason.value, "message": str(error)})
    return HTTPException(status_code=getattr(error, "status_code", None) or 500, detail=str(error))


@router.post("/generate")
async def chat_generate(request: ChatRequest, provider: DifyProvider = Depends(get_provider)):
    """Blocking generation; returns the complete result."""
    try:
        model = provider.chat(request.app_id, DifyChatSettings(
            response_mode="blocking", inputs=request.inputs, api_key=request.api_key,
        ))
        try:
            result = await model.generate(_options(request))
        finally:
            await model.aclose()
        return result.model_dump(mode="json", exclude={"request_body"})
    except (ProviderError, InvalidPromptError) as e:
        raise _http_error(e)


@router.post("/chat")
async def chat_stream(request: ChatRequest, provider: DifyProvider = Depends(get_provider)):
    """Stream parts as server-sent events, terminated by ``data: [DONE]``."""
    try:
        model = provider.chat(request.app_id, DifyChatSettings(
            response_mode="streaming", inputs=request.inputs, api_key=request.api_key,
        ))
        try:
            result = await model.stream(_options(request))
        except Exception:
            await model.aclose()
            raise
    except (ProviderError, InvalidPromptError) as e:
        raise _http_error(e)

    async def event_stream():
        try:
            async for part in result.stream:
                yield f"data: {json.dumps(part.to_dict(), default=str)}\n\n"
            yield "data: [DONE]\n\n"
        finally:
            await model.aclose()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"}
    )

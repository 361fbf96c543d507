"""
Request payload building for the Dify chat-messages endpoint.

Converts the standardized prompt and call headers into the Dify request body
``{inputs, query, response_mode, conversation_id?, user}``.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from ...config.constants import CHAT_ID_HEADER, DEFAULT_USER_ID, USER_ID_HEADER
from ...config.settings import DifyChatSettings, ResponseMode
from ...models.conversation_types import ConversationMessage, PromptMessage
from ..errors import AttachmentNotSupportedError, LastMessageNotUserError, NoMessagesError


def _as_dict(message: PromptMessage) -> Dict[str, Any]:
    if isinstance(message, ConversationMessage):
        return message.model_dump()
    return dict(message)


def _role(message: Dict[str, Any]) -> Any:
    role = message.get("role")
    return getattr(role, "value", role)


def extract_query(message: Dict[str, Any]) -> str:
    """
    Build the query string from a user message.

    String content is used as-is. List content contributes its non-empty
    text parts (and bare strings) joined with a single space; other part
    types are skipped.

    Raises:
        AttachmentNotSupportedError: If the message carries a file part
    """
    content = message.get("content")
    if isinstance(content, str):
        return content

    parts = [
        part.model_dump() if isinstance(part, BaseModel) else part
        for part in content or []
        if part is not None
    ]
    for part in parts:
        if isinstance(part, dict) and part.get("type") == "file":
            raise AttachmentNotSupportedError(
                media_type=part.get("media_type"),
                request_values=message,
            )

    texts: List[str] = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            texts.append(part.get("text") or "")
    return " ".join(text for text in texts if text)


def split_call_headers(
    headers: Optional[Mapping[str, Optional[str]]],
) -> Tuple[str, Optional[str], Dict[str, str]]:
    """
    Split per-call headers into the user id, the conversation id and the rest.

    ``user-id`` and ``chat-id`` are matched case-insensitively and are not
    forwarded upstream. Headers whose value is ``None`` are dropped.

    Returns:
        Tuple of (user id, conversation id or None, forwarded headers)
    """
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None
    forwarded: Dict[str, str] = {}

    for name, value in (headers or {}).items():
        key = name.lower()
        if key == USER_ID_HEADER:
            user_id = value
        elif key == CHAT_ID_HEADER:
            conversation_id = value
        elif value is not None:
            forwarded[name] = value

    return user_id or DEFAULT_USER_ID, conversation_id or None, forwarded


def build_request_body(
    messages: Sequence[PromptMessage],
    settings: DifyChatSettings,
    user_id: str = DEFAULT_USER_ID,
    conversation_id: Optional[str] = None,
    response_mode: ResponseMode = "streaming",
) -> Dict[str, Any]:
    """
    Build the JSON body for ``POST /chat-messages``.

    Args:
        messages: Prompt messages; only the last one is sent as the query
        settings: Chat settings providing the app ``inputs``
        user_id: End-user identifier
        conversation_id: Conversation to continue, if any
        response_mode: "streaming" or "blocking"

    Returns:
        The request body

    Raises:
        NoMessagesError: If there are no messages
        LastMessageNotUserError: If the last message is not a user message
        AttachmentNotSupportedError: If the last message has a file part
    """
    if not messages:
        raise NoMessagesError(request_values=list(messages))

    last = _as_dict(messages[-1])
    role = _role(last)
    if role != "user":
        raise LastMessageNotUserError(role, request_values=last)

    body: Dict[str, Any] = {
        "inputs": dict(settings.inputs),
        "query": extract_query(last),
        "response_mode": response_mode,
        "user": user_id,
    }
    if conversation_id:
        body["conversation_id"] = conversation_id
    return body

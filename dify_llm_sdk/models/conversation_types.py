from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from enum import Enum


class TurnRole(str, Enum):
    """Conversation turn roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class TextContent(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


class FileContent(BaseModel):
    """File or image attachment content part."""

    type: Literal["file"] = "file"
    data: Any
    media_type: str
    filename: Optional[str] = None


ContentPart = Annotated[Union[TextContent, FileContent], Field(discriminator="type")]


class ConversationMessage(BaseModel):
    """Prompt message passed to the language model.

    ``content`` is either a plain string or a list of typed content parts.
    """

    role: TurnRole
    content: Union[str, List[ContentPart]]
    parameters: Dict[str, Any] = Field(default_factory=dict)


# Prompt entries may also be plain dicts with the same shape
PromptMessage = Union[ConversationMessage, Dict[str, Any]]

"""
Base Language Model Interface

This module defines the abstract base class for language model adapters.
Implementations translate between the SDK's standardized call/stream
interface and a provider's API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional

from ..models.generation import CallOptions, GenerationResult
from ..models.stream_parts import StreamPart


@dataclass
class StreamResult:
    """A started streaming generation.

    Attributes:
        stream: Async iterator of stream parts, consumed once
        request: The JSON body that was sent upstream
        response_headers: Headers of the streaming HTTP response
    """
    stream: AsyncIterator[StreamPart]
    request: Dict[str, Any] = field(default_factory=dict)
    response_headers: Dict[str, str] = field(default_factory=dict)


class LanguageModel(ABC):
    """
    Abstract base class for language model adapters.

    The adapter is responsible for:
    - Building the provider request from the standardized call options
    - Making API calls to the provider
    - Normalizing blocking responses to GenerationResult
    - Translating streamed responses into standardized stream parts
    - Mapping provider-specific errors to ProviderError

    Adapters should NOT contain retry or routing logic.
    """

    model_id: str

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider identifier (e.g. "dify.chat")."""

    @abstractmethod
    async def generate(self, options: CallOptions) -> GenerationResult:
        """
        Generate a complete response in blocking mode.

        Args:
            options: Prompt messages and per-call headers

        Returns:
            GenerationResult with content blocks, usage and provider metadata

        Raises:
            InvalidPromptError: If the prompt cannot be turned into a request
            ProviderError: For transport and API errors
        """

    @abstractmethod
    async def stream(self, options: CallOptions) -> StreamResult:
        """
        Start a streaming generation.

        HTTP-level failures raise before the stream is returned; failures
        while reading are delivered as error parts inside the stream.

        Args:
            options: Prompt messages and per-call headers

        Returns:
            StreamResult whose ``stream`` yields standardized stream parts

        Raises:
            InvalidPromptError: If the prompt cannot be turned into a request
            ProviderError: For transport and API errors
        """


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    This should be raised for:
    - API transport errors
    - Authentication failures
    - Rate limiting
    - Transient failures that may be retryable

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.code = code
        self.is_retryable = False  # Default, should be set by error mapper
        self.original_error = None  # Will be set by error mapper if wrapping

"""
Error mapping utilities for the Dify adapter.

This module converts transport failures and Dify error bodies into
standardized ProviderError instances, and defines the typed errors raised
while turning a prompt into a Dify request.
"""

from enum import Enum
from typing import Any, Dict, Optional

import httpx

from .base import ProviderError


class ErrorMapper:
    """Maps Dify and transport errors to standardized ProviderError."""

    # Common HTTP status codes that indicate retryable errors
    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    RATE_LIMIT_PHRASES = ('rate limit', 'too many requests', 'quota exceeded', 'too_many_requests')

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Determine if an error is retryable.

        Args:
            error: The exception to check

        Returns:
            bool: True if the error is retryable
        """
        # Check for HTTP status codes
        status_code = getattr(error, 'status_code', None)
        if status_code is None and isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
        if status_code in ErrorMapper.RETRYABLE_STATUS_CODES:
            return True

        # Check for specific error types
        if isinstance(error, (httpx.TimeoutException, httpx.ConnectError)):
            return True

        # Check for rate limit errors in message
        error_msg = str(error).lower()
        return any(phrase in error_msg for phrase in ErrorMapper.RATE_LIMIT_PHRASES)

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """
        Extract retry-after value from error if available.

        Args:
            error: The exception to check

        Returns:
            Optional[float]: Seconds to wait before retry, or None
        """
        response = getattr(error, 'response', None)
        if response is not None and hasattr(response, 'headers'):
            return ErrorMapper._parse_retry_after(response.headers)

        return getattr(error, 'retry_after', None)

    @staticmethod
    def _parse_retry_after(headers: Any) -> Optional[float]:
        retry_after = headers.get('Retry-After')
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return None
        return None

    @staticmethod
    def map_dify_error(error: Exception) -> ProviderError:
        """
        Map transport errors raised while talking to Dify to ProviderError.

        Args:
            error: The httpx (or other) exception

        Returns:
            ProviderError with appropriate metadata
        """
        if isinstance(error, ProviderError):
            return error

        if isinstance(error, httpx.HTTPStatusError):
            return ErrorMapper.map_error_response(error.response, original_error=error)

        if isinstance(error, httpx.TimeoutException):
            message = f"Dify request timed out: {error}"
        elif isinstance(error, httpx.ConnectError):
            message = f"Dify connection failed: {error}"
        else:
            message = f"Dify API error: {error}"

        provider_error = ProviderError(
            message=message,
            provider="dify",
            retry_after=ErrorMapper.get_retry_after(error),
        )
        provider_error.is_retryable = ErrorMapper.is_retryable(error)
        provider_error.original_error = error
        return provider_error

    @staticmethod
    def map_error_response(
        response: httpx.Response,
        body: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> ProviderError:
        """
        Map a non-2xx Dify response to ProviderError.

        Dify error bodies look like ``{"code", "message", "status"}``; when the
        body has another shape the raw response text is used as the message.

        Args:
            response: The failed HTTP response (body must already be read)
            body: Decoded JSON body, if the caller already has it
            original_error: Exception to attach, if any

        Returns:
            ProviderError with appropriate metadata
        """
        from .dify.schema import parse_error_response

        if body is None:
            try:
                body = response.json()
            except ValueError:
                body = None

        parsed = parse_error_response(body) if body is not None else None
        if parsed is not None:
            message = parsed.message
            code = parsed.code
        else:
            message = response.text or response.reason_phrase
            code = None

        provider_error = ProviderError(
            message=f"Dify API error: {message}",
            provider="dify",
            status_code=response.status_code,
            retry_after=ErrorMapper._parse_retry_after(response.headers),
            code=code,
        )
        provider_error.is_retryable = response.status_code in ErrorMapper.RETRYABLE_STATUS_CODES
        provider_error.original_error = original_error
        return provider_error

    @staticmethod
    def get_error_classification(error: ProviderError) -> Dict[str, Any]:
        """
        Get detailed error classification for logging.

        Args:
            error: The ProviderError to classify

        Returns:
            Dict with error classification details
        """
        original = getattr(error, 'original_error', None)
        return {
            'status_code': error.status_code,
            'code': getattr(error, 'code', None),
            'is_retryable': getattr(error, 'is_retryable', False),
            'retry_after': error.retry_after,
            'error_type': type(original).__name__ if original is not None else None,
            'category': ErrorMapper._categorize_error(error),
        }

    @staticmethod
    def _categorize_error(error: ProviderError) -> str:
        """Categorize error for logging."""
        if error.status_code:
            if error.status_code == 401:
                return 'authentication'
            elif error.status_code == 429:
                return 'rate_limit'
            elif error.status_code >= 500:
                return 'server_error'
            elif error.status_code >= 400:
                return 'client_error'

        original = getattr(error, 'original_error', None)
        if isinstance(original, httpx.TimeoutException):
            return 'timeout'
        elif isinstance(original, httpx.TransportError):
            return 'network'

        return 'unknown'


class PromptErrorReason(str, Enum):
    """Machine-checkable reason carried by InvalidPromptError."""
    NO_MESSAGES = "no_messages"
    LAST_MESSAGE_NOT_USER = "last_message_not_user"
    ATTACHMENT_NOT_SUPPORTED = "attachment_not_supported"


class InvalidPromptError(ValueError):
    """
    Raised when a prompt cannot be turned into a Dify request.

    These are raised before any network call is made.

    Attributes:
        reason: Why the prompt was rejected
        request_values: The offending input
    """

    def __init__(self, message: str, reason: PromptErrorReason, request_values: Any = None):
        super().__init__(message)
        self.reason = reason
        self.request_values = request_values


class NoMessagesError(InvalidPromptError):
    def __init__(self, request_values: Any = None):
        super().__init__(
            "No user message found in prompt",
            PromptErrorReason.NO_MESSAGES,
            request_values,
        )


class LastMessageNotUserError(InvalidPromptError):
    def __init__(self, role: Any, request_values: Any = None):
        super().__init__(
            f"The last message must be a user message, got role {role!r}",
            PromptErrorReason.LAST_MESSAGE_NOT_USER,
            request_values,
        )
        self.role = role


class AttachmentNotSupportedError(InvalidPromptError):
    """Dify chat messages accept text only; file parts are rejected."""

    def __init__(self, media_type: Optional[str] = None, request_values: Any = None):
        detail = f" ({media_type})" if media_type else ""
        super().__init__(
            f"File attachments are not supported{detail}",
            PromptErrorReason.ATTACHMENT_NOT_SUPPORTED,
            request_values,
        )
        self.media_type = media_type

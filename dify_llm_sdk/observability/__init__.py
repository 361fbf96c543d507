"""Observability layer.

Structured logging for provider requests, token usage and streaming
metrics.
"""

from .logging import ProviderLogger

__all__ = [
    "ProviderLogger",
]

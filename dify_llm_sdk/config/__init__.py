"""Configuration module for Dify LLM SDK."""

from .settings import DifyChatSettings, DifyProviderSettings, ResponseMode

# Import all constants
from .constants import *

__all__ = [
    "DifyChatSettings",
    "DifyProviderSettings",
    "ResponseMode",
]

"""HTTP API layer for Dify LLM SDK.

This module provides FastAPI integration for the SDK.
It's an optional component that requires the 'http' extra to be installed:

    pip install dify-llm-sdk[http]
"""

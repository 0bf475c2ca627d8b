"""
Application services package.

Contains the chat orchestration services: provider access, retrieval,
prompt assembly, streaming, tool dispatch and memory extraction.
"""

from application.services.openai_sdk_service import OpenAISDKService

__all__ = [
    "OpenAISDKService",
]

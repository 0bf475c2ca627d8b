"""
Application models package.

Contains the request DTOs for the chat API.
"""

from application.models.request_models import (
    Attachment,
    ChatRequest,
    ChatTurn,
    UserLocation,
)

__all__ = [
    "Attachment",
    "ChatRequest",
    "ChatTurn",
    "UserLocation",
]

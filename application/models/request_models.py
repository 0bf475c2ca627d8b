"""
Request models for the chat API.

Field aliases follow the camelCase wire format sent by the web client.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatTurn(BaseModel):
    """One conversation turn."""

    role: Literal["user", "assistant", "system"] = Field(
        ..., description="Author of the turn"
    )
    content: str = Field(default="", description="Plain-text content of the turn")


class Attachment(BaseModel):
    """File attached to the latest user turn."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image", "document"] = Field(..., description="Attachment kind")
    url: Optional[str] = Field(default=None, description="Image URL or data URI")
    name: Optional[str] = Field(default=None, description="Original file name")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    extracted_text: Optional[str] = Field(
        default=None,
        alias="extractedText",
        description="Text pre-extracted from a document attachment",
    )


class UserLocation(BaseModel):
    """Approximate caller location shared by the client."""

    latitude: float
    longitude: float
    city: Optional[str] = None


class ChatRequest(BaseModel):
    """Request model for a streamed chat completion."""

    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatTurn] = Field(..., description="Ordered conversation turns")
    attachments: List[Attachment] = Field(default_factory=list)
    use_tools: bool = Field(default=True, alias="useTools")
    specialist_id: str = Field(default="default", alias="specialistId")
    ui_language: Literal["en", "rw"] = Field(default="en", alias="uiLanguage")
    is_guest: bool = Field(default=False, alias="isGuest")
    user_location: Optional[UserLocation] = Field(default=None, alias="userLocation")
    user_settings: Optional[Dict[str, Any]] = Field(default=None, alias="userSettings")

    @field_validator("messages")
    @classmethod
    def _require_messages(cls, value: List[ChatTurn]) -> List[ChatTurn]:
        if not value:
            raise ValueError("Messages array is required")
        return value

    @property
    def latest_user_text(self) -> str:
        """Content of the most recent user turn, or an empty string."""
        for turn in reversed(self.messages):
            if turn.role == "user":
                return turn.content.strip()
        return ""

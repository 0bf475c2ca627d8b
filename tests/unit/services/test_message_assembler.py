"""
Unit tests for provider message assembly.
"""

from unittest.mock import patch

from application.models.request_models import Attachment
from application.services.chat.message_assembler import (
    MessageAssembler,
    build_attachment_parts,
    format_location,
)
from application.services.retrieval import AugmentedContext, MemoryContext, RetrievalResult
from application.services.retrieval.knowledge_retriever import KNOWLEDGE_HEADER_EN
from tests.fixtures.stream_fixtures import make_chat_request

PROMPT_PATH = "application.services.chat.message_assembler.build_system_prompt"


class TestFormatting:
    """Test location and attachment formatting."""

    def test_location(self):
        """Test coordinates use four decimals."""
        request = make_chat_request(userLocation={"latitude": -1.9441, "longitude": 30.0619, "city": "Kigali"})

        assert format_location(request.user_location).startswith(
            "USER LOCATION: Kigali (latitude -1.9441, longitude 30.0619)."
        )
        assert format_location(None) == ""

    def test_attachment_parts(self):
        """Test images become image parts and documents become text parts."""
        parts = build_attachment_parts(
            "Summarise these",
            [
                Attachment(type="image", url="data:image/png;base64,AAA"),
                Attachment(type="document", name="lease.pdf", extractedText="Rent is 200,000 RWF"),
                Attachment(type="document", name="empty.pdf"),
            ],
        )

        assert parts == [
            {"type": "text", "text": "Summarise these"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}},
            {"type": "text", "text": "[Document: lease.pdf]\nRent is 200,000 RWF"},
        ]


class TestMessageAssembler:
    """Test the full message list."""

    def test_system_sections_in_order(self):
        """Test prompt, knowledge, memory and location order."""
        request = make_chat_request(userLocation={"latitude": -1.95, "longitude": 30.06})
        context = AugmentedContext(
            knowledge=RetrievalResult("VAT is 18%", "high"),
            memory=MemoryContext("MEMORY BLOCK", 1),
        )

        with patch(PROMPT_PATH, return_value="BASE PROMPT"):
            system = MessageAssembler().build_system_message(request, context)

        sections = system.split("\n\n")
        assert sections[0] == "BASE PROMPT"
        assert system.index(KNOWLEDGE_HEADER_EN) < system.index("VAT is 18%") < system.index("MEMORY BLOCK")
        assert system.index("MEMORY BLOCK") < system.index("USER LOCATION")

    def test_empty_context_is_prompt_only(self):
        """Test nothing but the prompt when there is no context."""
        with patch(PROMPT_PATH, return_value="BASE PROMPT"):
            system = MessageAssembler().build_system_message(make_chat_request(), AugmentedContext())

        assert system == "BASE PROMPT"

    def test_specialist_and_settings_forwarded(self):
        """Test specialist id and sanitised settings reach the prompt builder."""
        request = make_chat_request(specialistId="health-guide", userSettings={"tone": "casual", "x": 1})

        with patch(PROMPT_PATH, return_value="P") as build:
            MessageAssembler().build_system_message(request, AugmentedContext())

        build.assert_called_once_with(specialist_id="health-guide", user_settings={"tone": "casual"})

    def test_history_and_attachments(self):
        """Test history order and expansion of the latest user turn only."""
        request = make_chat_request(
            messages=[
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Muraho!"},
                {"role": "user", "content": "What is in this picture?"},
            ],
            attachments=[{"type": "image", "url": "https://img/cow.jpg"}],
        )

        with patch(PROMPT_PATH, return_value="P"):
            messages = MessageAssembler().assemble(request, AugmentedContext())

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[1] == {"role": "user", "content": "Hi"}
        assert messages[3]["content"][0] == {"type": "text", "text": "What is in this picture?"}
        assert messages[3]["content"][1]["image_url"]["url"] == "https://img/cow.jpg"

    def test_no_attachments_keeps_plain_text(self):
        """Test turns stay plain strings without attachments."""
        with patch(PROMPT_PATH, return_value="P"):
            messages = MessageAssembler().assemble(make_chat_request("Hello"), AugmentedContext())

        assert messages == [{"role": "system", "content": "P"}, {"role": "user", "content": "Hello"}]

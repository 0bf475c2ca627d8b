"""SSE event representation and formatting."""

import json
from typing import Any, Dict, Optional

# Terminal frame; sent verbatim, never JSON-encoded
DONE_FRAME = "data: [DONE]\n\n"


class StreamEvent:
    """Represents a streaming event to send to the client.

    The wire payload is a single JSON object whose top-level key identifies
    the event (``content``, ``toolCall``, ``generatedImage``,
    ``generatedVideo``, ``codeOutput``, ``error``). ``done`` has no payload
    and is rendered as the literal ``[DONE]`` frame.
    """

    CONTENT = "content"
    TOOL_CALL = "tool_call"
    GENERATED_IMAGE = "generated_image"
    GENERATED_VIDEO = "generated_video"
    CODE_OUTPUT = "code_output"
    ERROR = "error"
    DONE = "done"

    def __init__(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
    ):
        """Initialize a stream event.

        Args:
            event_type: One of the class-level event type constants
            data: Wire payload for the event (ignored for ``done``)
        """
        self.event_type = event_type
        self.data = data or {}

    @classmethod
    def content(cls, text: str) -> "StreamEvent":
        return cls(cls.CONTENT, {"content": text})

    @classmethod
    def tool_call(cls, name: str) -> "StreamEvent":
        return cls(cls.TOOL_CALL, {"toolCall": name})

    @classmethod
    def generated_image(cls, url: str, prompt: str, width: int, height: int) -> "StreamEvent":
        return cls(
            cls.GENERATED_IMAGE,
            {"generatedImage": {"url": url, "prompt": prompt, "width": width, "height": height}},
        )

    @classmethod
    def generated_video(
        cls, url: str, prompt: str, duration: Any, aspect_ratio: str
    ) -> "StreamEvent":
        return cls(
            cls.GENERATED_VIDEO,
            {
                "generatedVideo": {
                    "url": url,
                    "prompt": prompt,
                    "duration": duration,
                    "aspectRatio": aspect_ratio,
                }
            },
        )

    @classmethod
    def code_output(
        cls,
        code: str,
        language: str,
        output: Optional[str],
        error: Optional[str],
        exit_code: int,
    ) -> "StreamEvent":
        return cls(
            cls.CODE_OUTPUT,
            {
                "codeOutput": {
                    "code": code,
                    "language": language,
                    "output": output,
                    "error": error,
                    "exitCode": exit_code,
                }
            },
        )

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(cls.ERROR, {"error": message})

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(cls.DONE)

    def to_sse(self) -> str:
        """Convert event to SSE format.

        Returns:
            ``data: <json>\\n\\n`` frame, or the ``[DONE]`` frame
        """
        if self.event_type == self.DONE:
            return DONE_FRAME
        return f"data: {json.dumps(self.data, ensure_ascii=False)}\n\n"

    def __repr__(self) -> str:
        return f"StreamEvent({self.event_type!r}, {self.data!r})"

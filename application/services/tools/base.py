"""Tool handler interface and result type."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from application.services.streaming.events import StreamEvent


@dataclass
class ToolResult:
    """Outcome of one tool call.

    ``side_event`` is set by tools whose output is shown to the user directly
    (images, videos, code output). It is emitted out-of-band and is not part
    of the payload returned to the model.
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    call_id: str = ""
    side_event: Optional[StreamEvent] = None

    @classmethod
    def ok(cls, data: Any, side_event: Optional[StreamEvent] = None) -> "ToolResult":
        return cls(success=True, data=data, side_event=side_event)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_payload(self) -> Dict[str, Any]:
        """Serializable form sent back to the model as the tool message."""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


class ToolHandler:
    """Base class for a callable tool.

    Subclasses set ``name``, ``description`` and ``parameters`` (a JSON
    schema object) and implement ``execute``.
    """

    name: str = ""
    description: str = ""
    parameters: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError

    def to_openai_tool(self) -> Dict[str, Any]:
        """OpenAI function-calling definition for the catalog."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

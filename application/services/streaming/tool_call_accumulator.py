"""Reassembly of tool calls from streamed completion deltas."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ToolCallFragment:
    """In-progress tool call whose name/arguments are still arriving."""

    id: str
    name_partial: str = ""
    arguments_partial: str = ""


@dataclass(frozen=True)
class ToolCall:
    """Finalized tool call requested by the model."""

    id: str
    name: str
    arguments: str

    def to_message_dict(self) -> Dict[str, Any]:
        """Assistant ``tool_calls`` entry for the follow-up request."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class ToolCallAccumulator:
    """Accumulates tool-call deltas into finalized calls.

    A delta carrying an ``id`` opens a new fragment and closes the one that
    was open. A delta without an ``id`` is appended to the open fragment.
    At most one fragment is open at a time; ``finish`` closes it.

    Deltas from two calls that are open at the same time cannot be told
    apart by this rule; the provider is assumed to finish one call before
    starting the next.
    """

    def __init__(self):
        self._open: Optional[ToolCallFragment] = None
        self._finalized: List[ToolCall] = []

    @property
    def has_open_fragment(self) -> bool:
        return self._open is not None

    def add_delta(
        self,
        call_id: Optional[str],
        name: Optional[str],
        arguments: Optional[str],
    ) -> None:
        """Apply one tool-call delta."""
        if call_id:
            self._close_open()
            self._open = ToolCallFragment(
                id=call_id,
                name_partial=name or "",
                arguments_partial=arguments or "",
            )
            return

        if self._open is None:
            logger.warning("Tool call continuation received with no open fragment, ignoring")
            return

        if name:
            self._open.name_partial += name
        if arguments:
            self._open.arguments_partial += arguments

    def add_tool_call_delta(self, delta_tool_call: Any) -> None:
        """Apply a provider ``ChoiceDeltaToolCall``."""
        function = getattr(delta_tool_call, "function", None)
        self.add_delta(
            getattr(delta_tool_call, "id", None),
            getattr(function, "name", None) if function is not None else None,
            getattr(function, "arguments", None) if function is not None else None,
        )

    def finish(self) -> List[ToolCall]:
        """Close the open fragment (if any) and return every finalized call."""
        self._close_open()
        return list(self._finalized)

    def _close_open(self) -> None:
        fragment = self._open
        self._open = None
        if fragment is None:
            return
        if not fragment.name_partial:
            logger.warning(f"Dropping tool call {fragment.id} with no function name")
            return
        self._finalized.append(
            ToolCall(
                id=fragment.id,
                name=fragment.name_partial,
                arguments=fragment.arguments_partial,
            )
        )

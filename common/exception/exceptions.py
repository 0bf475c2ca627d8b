"""
Exception taxonomy for the chat orchestrator.

Route-level errors carry the HTTP status they map to. Tool-level errors are
never propagated to the client as HTTP failures; they are folded into the
failing call's ToolResult.
"""

from typing import Any, Dict, Optional


class ChatOrchestratorError(Exception):
    """Base class for all orchestrator errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ChatOrchestratorError):
    """Malformed request input."""

    status_code = 400


class AuthRequiredError(ChatOrchestratorError):
    """No authenticated identity and the caller did not opt in as guest."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class RateLimitExceeded(ChatOrchestratorError):
    """Caller exceeded its quota; carries the limiter verdict for headers."""

    status_code = 429

    def __init__(self, result: Any, message: str = "Too many requests. Please slow down."):
        super().__init__(message)
        self.result = result


class UpstreamProviderError(ChatOrchestratorError):
    """Language-model provider failure mapped to a user-facing message."""

    STATUS_MESSAGES: Dict[int, str] = {
        401: "Invalid API key.",
        429: "Rate limit exceeded. Try again later.",
        503: "OpenAI unavailable. Try again.",
    }

    def __init__(self, upstream_status: Optional[int], detail: str = ""):
        status = upstream_status or 500
        super().__init__(self.STATUS_MESSAGES.get(status, "API error"), status_code=status)
        self.upstream_status = upstream_status
        self.detail = detail


class ToolExecutionError(ChatOrchestratorError):
    """A single tool call failed; embedded in that call's result."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class WorkflowTimeoutError(ToolExecutionError):
    """Workflow engine did not answer within the bounded wait."""

    def __init__(self, workflow_id: str, timeout: float):
        super().__init__(workflow_id, "Request timed out - please try again")
        self.workflow_id = workflow_id
        self.timeout = timeout


class StreamInterrupted(ChatOrchestratorError):
    """The caller went away or cancelled; stop silently."""

    status_code = 499


class ArgumentParseError(ChatOrchestratorError):
    """Tool arguments were not valid JSON; callers degrade to empty arguments."""

    status_code = 400

    def __init__(self, tool_name: str, raw_arguments: str):
        super().__init__(f"Could not parse arguments for {tool_name}")
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments

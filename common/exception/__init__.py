from common.exception.exceptions import (
    ArgumentParseError,
    AuthRequiredError,
    ChatOrchestratorError,
    RateLimitExceeded,
    StreamInterrupted,
    ToolExecutionError,
    UpstreamProviderError,
    ValidationError,
    WorkflowTimeoutError,
)

__all__ = [
    "ArgumentParseError",
    "AuthRequiredError",
    "ChatOrchestratorError",
    "RateLimitExceeded",
    "StreamInterrupted",
    "ToolExecutionError",
    "UpstreamProviderError",
    "ValidationError",
    "WorkflowTimeoutError",
]

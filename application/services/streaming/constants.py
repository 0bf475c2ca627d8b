"""Constants for streaming service."""

# Sampling for both completion passes
COMPLETION_TEMPERATURE = 0.7
COMPLETION_MAX_TOKENS = 2048

# Delay between characters when replaying a workflow answer as content
WORKFLOW_REPLAY_DELAY_SECONDS = 0.005

# Tool calls allowed from a single first pass
MAX_TOOL_CALLS_PER_STREAM = 10

# Generic user-facing failure for unexpected stream errors
STREAM_ERROR_MESSAGE = "Hari ikibazo. Gerageza nanone."

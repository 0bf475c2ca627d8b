"""
Constants used across route handlers.
"""

# ============================================================================
# Request Correlation
# ============================================================================

# Header carrying a caller-supplied correlation id
REQUEST_ID_HEADER = "X-Request-ID"

# ============================================================================
# SSE Streaming Configuration
# ============================================================================

SSE_MIMETYPE = "text/event-stream"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
    "Content-Encoding": "none",
}

# ============================================================================
# Rate Limiting Defaults
# ============================================================================

# Coarse per-IP flood limit applied in front of the quota gate (requests per minute)
RATE_LIMIT_STANDARD = 100

# Quota bucket for the chat endpoint
CHAT_RATE_LIMIT_BUCKET = "chat"

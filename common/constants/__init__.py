"""Service and business logic constants."""

# ============================================================================
# Knowledge Retrieval
# ============================================================================

# Maximum estimated tokens of knowledge context added to the system prompt
MAX_CONTEXT_TOKENS = 2000

# Minimum similarity for a chunk or Q&A pair to be included
MIN_INCLUDE_SIMILARITY = 0.5

# Q&A similarity at or above which an answer counts as high confidence
HIGH_CONFIDENCE_THRESHOLD = 0.85

# Number of chunks / Q&A pairs requested from the search collaborator
KNOWLEDGE_MATCH_COUNT = 5

# ============================================================================
# Personal Memory
# ============================================================================

# Maximum memories included in the system prompt
MEMORY_CONTEXT_LIMIT = 10

# Accepted memory kinds
MEMORY_TYPES = ("fact", "preference", "context", "goal")

# Content length bounds for an extracted memory
MEMORY_MIN_LENGTH = 5
MEMORY_MAX_LENGTH = 500

# Confidence assigned when the extractor omits or garbles it
MEMORY_DEFAULT_CONFIDENCE = 0.7

# Bound on pending background extraction jobs
MEMORY_QUEUE_MAX_SIZE = 1000

# ============================================================================
# Tool Cache TTLs (seconds)
# ============================================================================

WEATHER_CACHE_TTL_SECONDS = 600
CURRENCY_CACHE_TTL_SECONDS = 300
SEARCH_CACHE_TTL_SECONDS = 1800
NEWS_CACHE_TTL_SECONDS = 900
PLACES_CACHE_TTL_SECONDS = 3600
TRANSLATION_CACHE_TTL_SECONDS = 3600

# ============================================================================
# Tool Timeouts
# ============================================================================

# Timeout for cached lookups against third-party APIs (seconds)
LOOKUP_TIMEOUT_SECONDS = 10.0

# Timeout for workflow engine webhooks (seconds)
WORKFLOW_TIMEOUT_SECONDS = 45.0

# Video job polling
VIDEO_POLL_INTERVAL_SECONDS = 5.0
VIDEO_MAX_POLL_ATTEMPTS = 60

# Kling signing token validity (seconds)
VIDEO_TOKEN_TTL_SECONDS = 1800

# Code execution limits
MAX_CODE_LENGTH = 50000
MAX_CODE_OUTPUT_LENGTH = 10000

__all__ = [
    'MAX_CONTEXT_TOKENS',
    'MIN_INCLUDE_SIMILARITY',
    'HIGH_CONFIDENCE_THRESHOLD',
    'KNOWLEDGE_MATCH_COUNT',
    'MEMORY_CONTEXT_LIMIT',
    'MEMORY_TYPES',
    'MEMORY_MIN_LENGTH',
    'MEMORY_MAX_LENGTH',
    'MEMORY_DEFAULT_CONFIDENCE',
    'MEMORY_QUEUE_MAX_SIZE',
    'WEATHER_CACHE_TTL_SECONDS',
    'CURRENCY_CACHE_TTL_SECONDS',
    'SEARCH_CACHE_TTL_SECONDS',
    'NEWS_CACHE_TTL_SECONDS',
    'PLACES_CACHE_TTL_SECONDS',
    'TRANSLATION_CACHE_TTL_SECONDS',
    'LOOKUP_TIMEOUT_SECONDS',
    'WORKFLOW_TIMEOUT_SECONDS',
    'VIDEO_POLL_INTERVAL_SECONDS',
    'VIDEO_MAX_POLL_ATTEMPTS',
    'VIDEO_TOKEN_TTL_SECONDS',
    'MAX_CODE_LENGTH',
    'MAX_CODE_OUTPUT_LENGTH',
]

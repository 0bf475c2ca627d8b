"""
Process-wide configuration.

Values are read once from the environment (``.env`` is loaded first) and
exposed as module-level constants. Optional integrations degrade gracefully
when their keys are missing.
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _get_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).lower() == "true"


# Language model provider
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "2048"))
OPENAI_TIMEOUT = int(os.getenv("OPENAI_TIMEOUT", "60"))
OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "3"))
MEMORY_EXTRACTION_MODEL = os.getenv("MEMORY_EXTRACTION_MODEL", "gpt-4o-mini")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "dall-e-3")

# Identity (Supabase access tokens are HS256 JWTs signed with the project secret)
AUTH_SECRET_KEY = os.getenv("AUTH_SECRET_KEY", "dev-secret-key-change-in-production")
AUTH_TOKEN_AUDIENCE = os.getenv("AUTH_TOKEN_AUDIENCE", "authenticated")

# Distributed state (rate limits and tool cache); in-process stores when unset
REDIS_URL = os.getenv("REDIS_URL")

# Knowledge base and memory storage
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Workflow engine
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL", "http://localhost:5678")
N8N_AUTH_TOKEN = os.getenv("N8N_AUTH_TOKEN", "")
ENABLE_WORKFLOW_ROUTING = _get_bool("ENABLE_WORKFLOW_ROUTING")

# External tool APIs
OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
EXCHANGE_RATE_API_KEY = os.getenv("EXCHANGE_RATE_API_KEY")
SERPAPI_API_KEY = os.getenv("SERPAPI_API_KEY")
NEWS_API_KEY = os.getenv("NEWS_API_KEY")
GOOGLE_TRANSLATE_API_KEY = os.getenv("GOOGLE_TRANSLATE_API_KEY")
KLING_ACCESS_KEY = os.getenv("KLING_ACCESS_KEY", "")
KLING_SECRET_KEY = os.getenv("KLING_SECRET_KEY", "")
KLING_API_BASE = os.getenv("KLING_API_BASE", "https://api.klingai.com/v1")
PISTON_API_URL = os.getenv("PISTON_API_URL", "https://emkc.org/api/v2/piston/execute")
PLACES_USER_AGENT = os.getenv("PLACES_USER_AGENT", "BakameAI/1.0 (https://bakame.ai)")

# Prompts
ENABLE_CUSTOM_PROMPTS = os.getenv("ENABLE_CUSTOM_PROMPTS", "true").lower() != "false"

# Rate limiting for the chat endpoint
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
RATE_LIMIT_CHAT_AUTHENTICATED = int(os.getenv("RATE_LIMIT_CHAT_AUTHENTICATED", "30"))
RATE_LIMIT_CHAT_ANONYMOUS = int(os.getenv("RATE_LIMIT_CHAT_ANONYMOUS", "10"))

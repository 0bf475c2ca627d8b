"""System prompt text and builders."""

from application.services.prompts.builder import base_prompt, build_system_prompt, legacy_prompt
from application.services.prompts.specialists import (
    SPECIALISTS,
    SpecialistConfig,
    get_specialist,
    get_specialist_prompt,
)
from application.services.prompts.user_context import build_user_context, sanitize_user_settings

__all__ = [
    "SPECIALISTS",
    "SpecialistConfig",
    "base_prompt",
    "build_system_prompt",
    "build_user_context",
    "get_specialist",
    "get_specialist_prompt",
    "legacy_prompt",
    "sanitize_user_settings",
]

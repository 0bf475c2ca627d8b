"""Assembles the identity part of the system prompt."""

from typing import Any, Dict, Optional

from application.services.prompts.loader import load_template
from application.services.prompts.specialists import get_specialist_prompt
from application.services.prompts.user_context import build_user_context
from common.config import config


def base_prompt() -> str:
    return load_template("base")


def legacy_prompt() -> str:
    return load_template("legacy")


def build_system_prompt(
    specialist_id: Optional[str] = None,
    user_settings: Optional[Dict[str, Any]] = None,
    custom_prompts_enabled: Optional[bool] = None,
) -> str:
    """Base prompt, then the specialist overlay, then user preferences.

    With custom prompts disabled the legacy prompt is returned on its own.
    ``user_settings`` must already be sanitised.
    """
    if custom_prompts_enabled is None:
        custom_prompts_enabled = config.ENABLE_CUSTOM_PROMPTS
    if not custom_prompts_enabled:
        return legacy_prompt()

    prompt = base_prompt()
    specialist_prompt = get_specialist_prompt(specialist_id)
    if specialist_prompt:
        prompt += f"\n\n{specialist_prompt}"
    prompt += build_user_context(user_settings or {})
    return prompt

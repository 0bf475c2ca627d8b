"""
User personalisation.

Client-supplied AI settings are sanitised to a known shape, then rendered
as a short ``USER PREFERENCES`` block for the choices that differ from the
defaults.
"""

from typing import Any, Dict, List

RESPONSE_STYLES = ("concise", "balanced", "detailed")
TONES = ("professional", "friendly", "casual")
LANGUAGE_PREFERENCES = ("kinyarwanda", "english", "mixed")

ABOUT_ME_MAX_LENGTH = 200
PROFESSION_MAX_LENGTH = 50
MAX_INTERESTS = 5
INTEREST_MAX_LENGTH = 30

DEFAULT_AI_SETTINGS: Dict[str, Any] = {
    "responseStyle": "balanced",
    "tone": "friendly",
    "languagePreference": "mixed",
    "aboutMe": "",
    "profession": "",
    "interests": [],
    "rememberContext": True,
}

_STYLE_LINES = {
    "concise": "Keep responses brief and to the point.",
    "detailed": "Provide thorough, detailed explanations.",
}
_TONE_LINES = {
    "professional": "Use a professional, formal tone.",
    "casual": "Be casual and relaxed in your responses.",
}
_LANGUAGE_LINES = {
    "kinyarwanda": "Respond primarily in Kinyarwanda.",
    "english": "Respond primarily in English.",
}


def sanitize_user_settings(raw: Any) -> Dict[str, Any]:
    """Keep only recognised settings with valid values, truncating free text."""
    if not isinstance(raw, dict):
        return {}

    result: Dict[str, Any] = {}
    if raw.get("responseStyle") in RESPONSE_STYLES:
        result["responseStyle"] = raw["responseStyle"]
    if raw.get("tone") in TONES:
        result["tone"] = raw["tone"]
    if raw.get("languagePreference") in LANGUAGE_PREFERENCES:
        result["languagePreference"] = raw["languagePreference"]

    if isinstance(raw.get("aboutMe"), str):
        result["aboutMe"] = raw["aboutMe"][:ABOUT_ME_MAX_LENGTH].strip()
    if isinstance(raw.get("profession"), str):
        result["profession"] = raw["profession"][:PROFESSION_MAX_LENGTH].strip()

    if isinstance(raw.get("interests"), list):
        result["interests"] = [
            interest[:INTEREST_MAX_LENGTH].strip()
            for interest in raw["interests"]
            if isinstance(interest, str)
        ][:MAX_INTERESTS]

    if isinstance(raw.get("rememberContext"), bool):
        result["rememberContext"] = raw["rememberContext"]

    return result


def build_user_context(settings: Dict[str, Any]) -> str:
    """Preferences block prefixed with a newline, or "" if nothing differs."""
    if not settings:
        return ""

    parts: List[str] = []
    for key, lines in (
        ("responseStyle", _STYLE_LINES),
        ("tone", _TONE_LINES),
        ("languagePreference", _LANGUAGE_LINES),
    ):
        line = lines.get(settings.get(key))
        if line:
            parts.append(line)

    if settings.get("rememberContext", True):
        if settings.get("profession"):
            parts.append(f"User is a {settings['profession']}.")
        about_me = (settings.get("aboutMe") or "").strip()
        if about_me:
            parts.append(f"About user: {about_me[:ABOUT_ME_MAX_LENGTH]}")
        interests = settings.get("interests") or []
        if interests:
            parts.append(f"Interests: {', '.join(interests[:MAX_INTERESTS])}")

    if not parts:
        return ""
    return "\nUSER PREFERENCES:\n" + "\n".join(parts)

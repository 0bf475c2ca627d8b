"""Template loader for system prompt text.

Prompt bodies live as ``<name>.template`` files in the ``templates``
directory next to this module.
"""

from functools import lru_cache
from pathlib import Path

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=None)
def load_template(template_name: str) -> str:
    """Load a template by name (without the ``.template`` extension).

    Raises:
        FileNotFoundError: If the template does not exist
    """
    template_file = TEMPLATES_DIR / f"{template_name}.template"
    if not template_file.exists():
        raise FileNotFoundError(
            f"Template '{template_name}.template' not found in {TEMPLATES_DIR}"
        )
    return template_file.read_text(encoding="utf-8").strip()

# prompts/prompt_renderer.py
"""Render prompt templates for the review oracle.

This module provides a small, opinionated wrapper around Jinja2 for rendering
templates under the `prompts/` directory.

Rendering behavior and contracts:

- Templates are loaded relative to `PROMPTS_PATH`.
- Undefined variables are treated as errors via Jinja2's `StrictUndefined`.
  Missing template variables will raise at render time rather than rendering a
  placeholder.
- Auto-escaping is disabled. Note text is interpolated verbatim.
- The `config` module is always injected into the template context as `config`.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

import config

PROMPTS_PATH = Path(__file__).parent
_env = Environment(
    loader=FileSystemLoader(PROMPTS_PATH),
    autoescape=False,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "en-GB": "British English",
    "en-AU": "Australian English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ja": "Japanese",
    "zh": "Chinese",
    "ru": "Russian",
}


def get_language_name(language_code: str | None) -> str:
    """Map a language code to the display name used in prompt instructions."""
    if not language_code:
        return "English"
    return LANGUAGE_NAMES.get(language_code, "English")


def language_instruction(language_code: str | None) -> str:
    """Return the "respond in" lead-in, or an empty string for plain English."""
    if not language_code or language_code == "en":
        return ""
    return f"Please respond in {get_language_name(language_code)}. "


def render_prompt(template_name: str, context: dict[str, Any]) -> str:
    """Render a Jinja2 prompt template with a strict variable contract.

    Args:
        template_name: Template path relative to `PROMPTS_PATH`, for example
            `grammar_check/full_review.j2`.
        context: Mapping of template variables to values. `config` is always
            added to the context.

    Returns:
        Rendered prompt text.

    Raises:
        jinja2.TemplateNotFound: If `template_name` does not exist under
            `PROMPTS_PATH`.
        jinja2.UndefinedError: If the template references a variable that is not
            provided in `context`.
    """
    template = _env.get_template(template_name)
    template_context = {"config": config, **context}
    return template.render(**template_context)


@lru_cache(maxsize=16)
def get_system_prompt(prompt_dir: str) -> str:
    """Load `prompts/<prompt_dir>/system.md`, returning an empty string when unavailable.

    Notes:
        Results are cached in-process. Call `get_system_prompt.cache_clear()` to
        invalidate the cache if prompt files change during the process lifetime.
    """
    system_path = PROMPTS_PATH / prompt_dir / "system.md"
    try:
        if system_path.exists():
            return system_path.read_text(encoding="utf-8").strip()
    except OSError:
        return ""
    return ""

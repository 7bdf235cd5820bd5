"""Expose Proofline configuration as stable module-level constants.

This package provides a facade over the Pydantic settings model defined in
[`config.settings`](config/settings.py:1). The primary API is the `settings`
singleton plus a set of module-level constants mirroring its fields.

Configuration precedence and lifecycle:
- On initial import, configuration is loaded by importing `config.settings`,
  which constructs the `settings` singleton.
- Values come from the process environment and may be sourced from a `.env`
  file.
- [`reload()`](config/__init__.py:80) re-reads `.env` with override enabled and
  replaces this module's exported values.

Notes:
    Call sites read `config.<NAME>` at call time rather than binding values at
    import, so tests can monkeypatch individual constants.
"""

from typing import Any

from dotenv import load_dotenv

from . import settings as settings_mod
from .settings import (
    ProoflineSettings as ProoflineSettings,
)
from .settings import (
    rich_formatter as rich_formatter,
)
from .settings import (
    settings as settings,
)
from .settings import (
    simple_formatter as simple_formatter,
)

ANTHROPIC_API_BASE = settings.ANTHROPIC_API_BASE
ANTHROPIC_API_KEY = settings.ANTHROPIC_API_KEY
ANTHROPIC_VERSION = settings.ANTHROPIC_VERSION
BACKUPS_DIR_NAME = settings.BACKUPS_DIR_NAME
CHUNKING_THRESHOLD_CHARS = settings.CHUNKING_THRESHOLD_CHARS
CLAUDE_MODEL = settings.CLAUDE_MODEL
CORRECTION_LANGUAGE = settings.CORRECTION_LANGUAGE
DATA_DIR = settings.DATA_DIR
DIFF_SIMILARITY_THRESHOLD = settings.DIFF_SIMILARITY_THRESHOLD
ENABLE_RICH_PROGRESS = settings.ENABLE_RICH_PROGRESS
GEMINI_API_BASE = settings.GEMINI_API_BASE
GEMINI_API_KEY = settings.GEMINI_API_KEY
GEMINI_MODEL = settings.GEMINI_MODEL
HTTPX_TIMEOUT = settings.HTTPX_TIMEOUT
LLM_RETRY_ATTEMPTS = settings.LLM_RETRY_ATTEMPTS
LLM_RETRY_DELAY_SECONDS = settings.LLM_RETRY_DELAY_SECONDS
LOG_DATE_FORMAT = settings.LOG_DATE_FORMAT
LOG_FILE = settings.LOG_FILE
LOG_FORMAT = settings.LOG_FORMAT
LOG_LEVEL_STR = settings.LOG_LEVEL_STR
MAX_CHUNK_SIZE_CHARS = settings.MAX_CHUNK_SIZE_CHARS
OPENAI_API_BASE = settings.OPENAI_API_BASE
OPENAI_API_KEY = settings.OPENAI_API_KEY
OPENAI_MODEL = settings.OPENAI_MODEL
ORACLE_MAX_TOKENS = settings.ORACLE_MAX_TOKENS
ORACLE_PROVIDER = settings.ORACLE_PROVIDER
ORACLE_TEMPERATURE = settings.ORACLE_TEMPERATURE
SIMPLE_LOGGING_MODE = settings.SIMPLE_LOGGING_MODE


def reload() -> bool:
    """Reload configuration from the environment and refresh exported values.

    Returns:
        ``True`` when the settings were rebuilt, ``False`` when validation failed.
    """
    global settings

    load_dotenv(override=True)
    try:
        fresh = ProoflineSettings()
    except ValueError:
        settings_mod.logger.error("Failed to reload configuration", exc_info=True)
        return False

    settings = fresh
    settings_mod.settings = fresh
    module_globals: dict[str, Any] = globals()
    for field_name in ProoflineSettings.model_fields:
        module_globals[field_name] = getattr(fresh, field_name)
    return True

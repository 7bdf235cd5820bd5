# config/settings.py
"""
Configuration settings for the Proofline correction pipeline.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import logging as stdlib_logging
from collections.abc import MutableMapping
from typing import Any

import structlog
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()


class ProoflineSettings(BaseSettings):
    """Full configuration for the Proofline system."""

    # Oracle provider selection and credentials
    ORACLE_PROVIDER: str = "claude"
    ANTHROPIC_API_BASE: str = "https://api.anthropic.com/v1"
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_VERSION: str = "2023-06-01"
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_API_KEY: str = ""
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_API_KEY: str = ""

    # Per-provider models
    CLAUDE_MODEL: str = "claude-haiku-4-5"
    OPENAI_MODEL: str = "gpt-4-turbo-preview"
    GEMINI_MODEL: str = "gemini-pro"

    # Oracle call settings
    ORACLE_MAX_TOKENS: int = 2000
    ORACLE_TEMPERATURE: float = 0.2
    LLM_RETRY_ATTEMPTS: int = 3
    LLM_RETRY_DELAY_SECONDS: float = 3.0
    HTTPX_TIMEOUT: float = 120.0

    # Review language (ISO code, e.g. "en-GB", "fr")
    CORRECTION_LANGUAGE: str = "en"

    # Size policy
    CHUNKING_THRESHOLD_CHARS: int = 4000
    MAX_CHUNK_SIZE_CHARS: int = 3000
    DIFF_SIMILARITY_THRESHOLD: float = 0.7

    # Storage
    DATA_DIR: str = "data"
    BACKUPS_DIR_NAME: str = ".backups"

    # Logging & UI
    LOG_LEVEL_STR: str = Field("INFO", alias="LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = None
    ENABLE_RICH_PROGRESS: bool = True
    # Minimal logging mode: console only, no rotation/Rich
    SIMPLE_LOGGING_MODE: bool = False

    @model_validator(mode="after")
    def clamp_chunk_size(self) -> ProoflineSettings:
        # A chunk larger than the threshold would never be produced by the chunked path.
        if self.MAX_CHUNK_SIZE_CHARS > self.CHUNKING_THRESHOLD_CHARS:
            object.__setattr__(
                self, "MAX_CHUNK_SIZE_CHARS", self.CHUNKING_THRESHOLD_CHARS
            )
        object.__setattr__(self, "ORACLE_PROVIDER", self.ORACLE_PROVIDER.lower())
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )


settings = ProoflineSettings()


# Update module level variables for backward compatibility
for _field in ProoflineSettings.model_fields:
    globals()[_field] = getattr(settings, _field)


# Configure structlog to integrate with standard logging and output human-readable messages
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="%m/%d/%Y, %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)


# Filter internal structlog fields
def filter_internal_keys(
    logger: Any, name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Remove internal structlog fields from event dict."""
    keys_to_remove = [k for k in event_dict.keys() if k.startswith("_")]
    for key in keys_to_remove:
        event_dict.pop(key, None)
    return event_dict


def _format_context(event_dict: MutableMapping[str, Any], key_style: str) -> str:
    context_parts = []
    for key, value in event_dict.items():
        if key.startswith("_"):
            continue
        if isinstance(value, str) and len(value) > 50:
            value_str = f"{value[:47]}..."
        else:
            value_str = str(value)
        context_parts.append(f"{key_style.format(key=key)}={value_str}")
    return f"({', '.join(context_parts)})" if context_parts else ""


# Simple human-readable formatter for structlog (with Rich markup for console)
def simple_log_format_rich(
    logger: Any, name: str, event_dict: MutableMapping[str, Any]
) -> str:
    """Simple human-readable log formatter with Rich markup for console output."""
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)

    level = event_dict.pop("level", "INFO")
    timestamp = event_dict.pop("timestamp", "")
    logger_name = event_dict.pop("logger", "")
    event = event_dict.pop("event", "")

    parts = []
    if timestamp:
        parts.append(f"{timestamp}")
    if logger_name:
        short_name = logger_name.split(".")[-1] if "." in logger_name else logger_name
        parts.append(f"[cyan]{short_name}[/cyan]")

    level_upper = level.upper()
    if level_upper == "ERROR" or level_upper == "CRITICAL":
        parts.append(f"[red]{level_upper}[/red]")
    elif level_upper == "WARNING":
        parts.append(f"[yellow]{level_upper}[/yellow]")
    elif level_upper == "INFO":
        parts.append(f"[green]{level_upper}[/green]")
    else:
        parts.append(level_upper)

    parts.append(f"[bold]{event}[/bold]" if event else "")

    context = _format_context(event_dict, "[dim]{key}[/dim]")
    if context:
        parts.append(context)

    return " ".join(parts)


# Simple human-readable formatter for structlog (plain text for files)
def simple_log_format_plain(
    logger: Any, name: str, event_dict: MutableMapping[str, Any]
) -> str:
    """Simple human-readable log formatter without markup for file output."""
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)

    level = event_dict.pop("level", "INFO")
    timestamp = event_dict.pop("timestamp", "")
    logger_name = event_dict.pop("logger", "")
    event = event_dict.pop("event", "")

    parts = []
    if timestamp:
        parts.append(f"{timestamp}")
    if logger_name:
        short_name = logger_name.split(".")[-1] if "." in logger_name else logger_name
        parts.append(f"[{short_name}]")

    parts.append(level.upper())
    parts.append(event if event else "")

    context = _format_context(event_dict, "{key}")
    if context:
        parts.append(context)

    return " ".join(parts)


_foreign_pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="%m/%d/%Y, %H:%M:%S"),
    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
]

# Formatter for file output (plain text, no Rich markup)
simple_formatter = structlog.stdlib.ProcessorFormatter(
    foreign_pre_chain=_foreign_pre_chain,
    processors=[
        filter_internal_keys,
        simple_log_format_plain,
    ],
)

# Formatter for Rich console output (with color markup)
rich_formatter = structlog.stdlib.ProcessorFormatter(
    foreign_pre_chain=_foreign_pre_chain,
    processors=[
        filter_internal_keys,
        simple_log_format_rich,
    ],
)

root_logger = stdlib_logging.getLogger()
root_logger.setLevel(settings.LOG_LEVEL_STR)

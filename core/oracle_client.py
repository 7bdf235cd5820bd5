# core/oracle_client.py
"""Send review requests to the configured text-generation provider.

The oracle is a black box: one prompt in, one raw text blob out. This module
builds the prompt for a chunk, shapes the request for the selected provider
(Claude, OpenAI or Gemini), and pulls the reply text out of the provider's
response envelope. It does not interpret the reply; see
`processing.response_parser` for that.

Notes:
    Every transport, authentication or quota problem is raised as
    `OracleError` carrying the HTTP status code when one exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

import config
from core.exceptions import OracleError, create_error_context
from core.http_client_service import HTTPClientService
from prompts.prompt_renderer import get_system_prompt, language_instruction, render_prompt

logger = structlog.get_logger(__name__)

PROMPT_DIR = "grammar_check"


@dataclass(frozen=True)
class OracleRequest:
    """One review request for a single chunk."""

    chunk_text: str
    instruction_prompt: str
    is_partial: bool
    chunk_index: int | None = None
    chunk_count: int | None = None


def build_review_request(
    chunk_text: str,
    chunk_index: int = 0,
    chunk_count: int = 1,
    language: str | None = None,
) -> OracleRequest:
    """Render the review prompt for one chunk.

    Sections of a multi-chunk note get the short section prompt; a note
    reviewed whole gets the full prompt that also asks for `correctedText`.
    """
    is_partial = chunk_count > 1
    context = {
        "language_instruction": language_instruction(language if language is not None else config.CORRECTION_LANGUAGE),
        "chunk_text": chunk_text,
        "chunk_number": chunk_index + 1,
        "chunk_count": chunk_count,
    }
    template = f"{PROMPT_DIR}/section_review.j2" if is_partial else f"{PROMPT_DIR}/full_review.j2"
    return OracleRequest(
        chunk_text=chunk_text,
        instruction_prompt=render_prompt(template, context),
        is_partial=is_partial,
        chunk_index=chunk_index if is_partial else None,
        chunk_count=chunk_count if is_partial else None,
    )


def build_improve_request(text: str, language: str | None = None) -> OracleRequest:
    """Render the whole-note rewrite prompt."""
    context = {
        "language_instruction": language_instruction(language if language is not None else config.CORRECTION_LANGUAGE),
        "chunk_text": text,
    }
    return OracleRequest(
        chunk_text=text,
        instruction_prompt=render_prompt(f"{PROMPT_DIR}/improve_writing.j2", context),
        is_partial=False,
    )


class ProviderAdapter:
    """Request shaping and reply extraction for one provider API."""

    name = "base"

    def __init__(self, model: str, max_tokens: int, temperature: float):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def api_key(self) -> str:
        raise NotImplementedError

    def build(self, prompt: str, system_prompt: str) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str] | None]:
        """Return ``(url, payload, headers, params)``."""
        raise NotImplementedError

    def extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError


class ClaudeAdapter(ProviderAdapter):
    name = "claude"

    def api_key(self) -> str:
        return config.ANTHROPIC_API_KEY

    def build(self, prompt: str, system_prompt: str) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str] | None]:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        headers = {
            "x-api-key": self.api_key(),
            "anthropic-version": config.ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        return f"{config.ANTHROPIC_API_BASE}/messages", payload, headers, None

    def extract_text(self, data: dict[str, Any]) -> str:
        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise OracleError("Invalid Claude API response format") from None
        if not isinstance(text, str):
            raise OracleError("Invalid Claude API response format")
        return text


class OpenAIAdapter(ProviderAdapter):
    name = "openai"

    def api_key(self) -> str:
        return config.OPENAI_API_KEY

    def build(self, prompt: str, system_prompt: str) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str] | None]:
        messages = ([{"role": "system", "content": system_prompt}] if system_prompt else []) + [
            {"role": "user", "content": prompt}
        ]
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": messages,
            "stream": False,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key()}",
            "Content-Type": "application/json",
        }
        return f"{config.OPENAI_API_BASE}/chat/completions", payload, headers, None

    def extract_text(self, data: dict[str, Any]) -> str:
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise OracleError("Invalid OpenAI API response format") from None
        if not isinstance(text, str):
            raise OracleError("Invalid OpenAI API response format")
        return text


class GeminiAdapter(ProviderAdapter):
    name = "gemini"

    def api_key(self) -> str:
        return config.GEMINI_API_KEY

    def build(self, prompt: str, system_prompt: str) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str] | None]:
        payload: dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": self.max_tokens,
                "temperature": self.temperature,
            },
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        url = f"{config.GEMINI_API_BASE}/models/{self.model}:generateContent"
        return url, payload, {"Content-Type": "application/json"}, {"key": self.api_key()}

    def extract_text(self, data: dict[str, Any]) -> str:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise OracleError("Invalid Gemini API response format") from None
        if not isinstance(text, str):
            raise OracleError("Invalid Gemini API response format")
        return text


def create_adapter(provider: str | None = None) -> ProviderAdapter:
    """Build the adapter for `provider` (defaults to the configured one)."""
    name = (provider or config.ORACLE_PROVIDER).lower()
    if name == "claude":
        return ClaudeAdapter(config.CLAUDE_MODEL, config.ORACLE_MAX_TOKENS, config.ORACLE_TEMPERATURE)
    if name == "openai":
        return OpenAIAdapter(config.OPENAI_MODEL, config.ORACLE_MAX_TOKENS, config.ORACLE_TEMPERATURE)
    if name == "gemini":
        return GeminiAdapter(config.GEMINI_MODEL, config.ORACLE_MAX_TOKENS, config.ORACLE_TEMPERATURE)
    raise OracleError(f"Unknown provider: {name}")


def _error_message_from_response(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "API request failed"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        if isinstance(body.get("message"), str):
            return body["message"]
    return "API request failed"


class CorrectionOracleClient:
    """Send one chunk plus instructions to the provider and return its raw reply."""

    def __init__(
        self,
        http_client: HTTPClientService | None = None,
        adapter: ProviderAdapter | None = None,
    ):
        self._http_client = http_client or HTTPClientService()
        self._adapter = adapter or create_adapter()

    @property
    def provider(self) -> str:
        return self._adapter.name

    async def aclose(self) -> None:
        await self._http_client.aclose()

    async def send(self, request: OracleRequest) -> str:
        """Send a rendered request and return the provider's reply text.

        Raises:
            OracleError: On missing credentials, HTTP failure, or a response
                envelope that does not match the provider's format.
        """
        if not self._adapter.api_key().strip():
            raise OracleError("API key not configured. Please add your API key in settings.")

        url, payload, headers, params = self._adapter.build(
            request.instruction_prompt, get_system_prompt(PROMPT_DIR)
        )
        logger.debug(
            "Sending review request",
            provider=self._adapter.name,
            chunk_index=request.chunk_index,
            chunk_count=request.chunk_count,
            chunk_length=len(request.chunk_text),
        )

        try:
            response = await self._http_client.post_json(url, payload, headers=headers, params=params)
        except httpx.HTTPStatusError as e:
            raise OracleError(
                _error_message_from_response(e.response),
                status_code=e.response.status_code,
                details=create_error_context(provider=self._adapter.name),
            ) from e
        except httpx.TimeoutException as e:
            raise OracleError("The review service timed out. Please try again.") from e
        except httpx.RequestError as e:
            raise OracleError(f"Could not reach the review service: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise OracleError(
                f"Invalid {self._adapter.name} API response format",
                status_code=response.status_code,
            ) from e
        return self._adapter.extract_text(data)

    async def review(
        self,
        chunk_text: str,
        chunk_index: int = 0,
        chunk_count: int = 1,
    ) -> str:
        """Render and send the grammar review prompt for one chunk."""
        return await self.send(build_review_request(chunk_text, chunk_index, chunk_count))

    async def improve(self, text: str) -> str:
        """Render and send the whole-note rewrite prompt."""
        return await self.send(build_improve_request(text))

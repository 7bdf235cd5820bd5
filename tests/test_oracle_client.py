# tests/test_oracle_client.py
import json

import httpx
import pytest

import config
from core.exceptions import OracleError
from core.http_client_service import HTTPClientService
from core.oracle_client import (
    ClaudeAdapter,
    CorrectionOracleClient,
    GeminiAdapter,
    OpenAIAdapter,
    build_improve_request,
    build_review_request,
    create_adapter,
)


@pytest.fixture(autouse=True)
def _provider_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ANTHROPIC_API_BASE", "http://claude.test/v1")
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "claude-key")
    monkeypatch.setattr(config, "ANTHROPIC_VERSION", "2023-06-01")
    monkeypatch.setattr(config, "OPENAI_API_BASE", "http://openai.test/v1")
    monkeypatch.setattr(config, "OPENAI_API_KEY", "openai-key")
    monkeypatch.setattr(config, "GEMINI_API_BASE", "http://gemini.test/v1beta")
    monkeypatch.setattr(config, "GEMINI_API_KEY", "gemini-key")
    monkeypatch.setattr(config, "LLM_RETRY_ATTEMPTS", 1)


def _client(adapter, handler) -> CorrectionOracleClient:
    service = HTTPClientService(timeout=5, transport=httpx.MockTransport(handler))
    return CorrectionOracleClient(http_client=service, adapter=adapter)


class TestBuildRequests:
    def test_single_chunk_uses_full_review_prompt(self) -> None:
        request = build_review_request("Hello teh world.")

        assert not request.is_partial
        assert request.chunk_index is None
        assert "correctedText" in request.instruction_prompt
        assert request.instruction_prompt.rstrip().endswith("Hello teh world.")
        assert not request.instruction_prompt.startswith("Please respond in")

    def test_section_prompt_names_position(self) -> None:
        request = build_review_request("Section body.", chunk_index=1, chunk_count=4)

        assert request.is_partial
        assert request.chunk_index == 1
        assert request.chunk_count == 4
        assert "section 2/4" in request.instruction_prompt
        assert "correctedText" not in request.instruction_prompt

    def test_language_instruction_leads_the_prompt(self) -> None:
        request = build_review_request("Hola mundo.", language="es")
        assert request.instruction_prompt.startswith("Please respond in Spanish. ")

    def test_configured_language_is_used_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "CORRECTION_LANGUAGE", "en-GB")
        request = build_improve_request("Colour me surprised.")
        assert request.instruction_prompt.startswith("Please respond in British English. ")

    def test_unknown_language_falls_back_to_english_name(self) -> None:
        request = build_review_request("Text.", language="xx")
        assert request.instruction_prompt.startswith("Please respond in English. ")


class TestCreateAdapter:
    def test_known_providers(self) -> None:
        assert isinstance(create_adapter("claude"), ClaudeAdapter)
        assert isinstance(create_adapter("OpenAI"), OpenAIAdapter)
        assert isinstance(create_adapter("gemini"), GeminiAdapter)

    def test_configured_provider_is_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "ORACLE_PROVIDER", "gemini")
        assert create_adapter().name == "gemini"

    def test_unknown_provider(self) -> None:
        with pytest.raises(OracleError, match="Unknown provider: llama"):
            create_adapter("llama")


@pytest.mark.asyncio
class TestProviderRequests:
    async def test_claude_request_shape_and_reply(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = dict(request.headers)
            captured["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"content": [{"type": "text", "text": '{"corrections": []}'}]})

        client = _client(ClaudeAdapter("claude-test", 2000, 0.2), handler)
        reply = await client.review("Hello world.")

        assert reply == '{"corrections": []}'
        assert captured["url"] == "http://claude.test/v1/messages"
        assert captured["headers"]["x-api-key"] == "claude-key"
        assert captured["headers"]["anthropic-version"] == "2023-06-01"
        assert captured["payload"]["model"] == "claude-test"
        assert captured["payload"]["max_tokens"] == 2000
        assert captured["payload"]["messages"][0]["role"] == "user"
        assert "Hello world." in captured["payload"]["messages"][0]["content"]
        assert "copy editor" in captured["payload"]["system"]
        await client.aclose()

    async def test_openai_request_shape_and_reply(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = dict(request.headers)
            captured["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "improved"}}]})

        client = _client(OpenAIAdapter("gpt-test", 1500, 0.2), handler)
        reply = await client.improve("Some note.")

        assert reply == "improved"
        assert captured["url"] == "http://openai.test/v1/chat/completions"
        assert captured["headers"]["authorization"] == "Bearer openai-key"
        roles = [m["role"] for m in captured["payload"]["messages"]]
        assert roles == ["system", "user"]
        assert captured["payload"]["stream"] is False
        await client.aclose()

    async def test_gemini_request_shape_and_reply(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = request.url
            captured["payload"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "gemini says hi"}]}}]},
            )

        client = _client(GeminiAdapter("gemini-test", 2000, 0.2), handler)
        reply = await client.review("Section text.", chunk_index=0, chunk_count=2)

        assert reply == "gemini says hi"
        assert captured["url"].path == "/v1beta/models/gemini-test:generateContent"
        assert captured["url"].params["key"] == "gemini-key"
        assert captured["payload"]["generationConfig"]["maxOutputTokens"] == 2000
        assert "section 1/2" in captured["payload"]["contents"][0]["parts"][0]["text"]
        await client.aclose()


@pytest.mark.asyncio
class TestOracleErrors:
    async def test_missing_api_key_fails_before_any_request(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "")
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={})

        client = _client(ClaudeAdapter("m", 10, 0.2), handler)
        with pytest.raises(OracleError, match="API key not configured"):
            await client.review("text")

        assert calls == 0
        await client.aclose()

    async def test_http_error_carries_status_and_provider_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "invalid x-api-key"}})

        client = _client(ClaudeAdapter("m", 10, 0.2), handler)
        with pytest.raises(OracleError) as exception_info:
            await client.review("text")

        assert exception_info.value.status_code == 401
        assert str(exception_info.value) == "invalid x-api-key"
        await client.aclose()

    async def test_non_json_error_body_uses_generic_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="<html>bad gateway</html>")

        client = _client(OpenAIAdapter("m", 10, 0.2), handler)
        with pytest.raises(OracleError) as exception_info:
            await client.review("text")

        assert exception_info.value.status_code == 400
        assert exception_info.value.message == "API request failed"
        await client.aclose()

    async def test_timeout_is_reported_as_oracle_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(GeminiAdapter("m", 10, 0.2), handler)
        with pytest.raises(OracleError, match="timed out"):
            await client.review("text")
        await client.aclose()

    async def test_unexpected_envelope_is_reported(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        client = _client(ClaudeAdapter("m", 10, 0.2), handler)
        with pytest.raises(OracleError, match="Invalid Claude API response format"):
            await client.review("text")
        await client.aclose()

"""
LLM Client / Router / Prompt Tests
==================================
All tests mock the HTTP layer. No real API calls.

Covers:
    - Provider filtering and default provider table
    - Provider health cooldown and recovery
    - Fallback across providers
    - Retry budget, 429 short-circuit, timeouts, empty responses
    - Gemini and OpenAI-compatible payloads / response parsing
    - Prompt builders
"""
import asyncio
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from autofix.core.config import PROVIDER_COOLDOWN_SKIP_COUNT, PROVIDER_COOLDOWN_THRESHOLD
from autofix.llm.client import LLMClient, LLMRequest
from autofix.llm.prompts import (
    CATEGORY_HINTS,
    build_full_prompt,
    build_iterative_prompt,
    build_quick_prompt,
    build_regeneration_prompt,
    extract_component_name,
    get_recent_logs_context,
)
from autofix.llm.router import LLMRouter, ProviderConfig, ProviderHealth, default_providers
from autofix.parser.analyzer import error_analyzer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _run(coro):
    """Run an async coroutine synchronously for testing."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def _make_provider(name: str, api_key: str = "key", max_retries: int = 2) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        api_key=api_key,
        base_url=f"https://{name}.example.com/v1",
        model=f"{name}-model",
        max_retries=max_retries,
    )


def _make_client(*providers: ProviderConfig) -> LLMClient:
    return LLMClient(router=LLMRouter(providers=list(providers)))


def _http_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.com")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def _mock_http(payload: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    http = MagicMock()
    http.is_closed = False
    http.post = AsyncMock(return_value=resp)
    http.aclose = AsyncMock()
    return http


# ===========================================================================
# 1. Router
# ===========================================================================
class TestRouter:

    def test_unconfigured_providers_filtered(self):
        router = LLMRouter(providers=[_make_provider("gemini", api_key=""), _make_provider("groq")])
        assert [p.name for p in router.providers] == ["groq"]

    def test_no_providers(self):
        router = LLMRouter(providers=[])
        assert not router.has_providers()
        assert router.get_provider() is None

    def test_default_providers_from_environment(self):
        with patch("autofix.llm.router.GEMINI_API_KEY", "g-key"), \
             patch("autofix.llm.router.GROQ_API_KEY", None), \
             patch("autofix.llm.router.OPENROUTER_API_KEY", "o-key"):
            providers = default_providers()
            router = LLMRouter()
        assert [p.name for p in providers] == ["gemini", "groq", "openrouter"]
        assert [p.name for p in router.providers] == ["gemini", "openrouter"]
        assert providers[2].max_retries == 1

    def test_unhealthy_primary_skipped(self):
        router = LLMRouter(providers=[_make_provider("gemini"), _make_provider("groq")])
        for _ in range(PROVIDER_COOLDOWN_THRESHOLD):
            router.report_failure("gemini")
        assert router.get_provider().name == "groq"
        assert router.get_fallback_provider("groq") is None

    def test_all_unhealthy_falls_back_to_primary(self):
        router = LLMRouter(providers=[_make_provider("gemini"), _make_provider("groq")])
        for _ in range(PROVIDER_COOLDOWN_THRESHOLD):
            router.report_failure("gemini")
            router.report_failure("groq")
        assert router.get_provider().name == "gemini"

    def test_fallback_excludes_tried(self):
        router = LLMRouter(providers=[_make_provider("gemini"), _make_provider("groq")])
        assert router.get_fallback_provider("gemini").name == "groq"

    def test_health_state_and_reset(self):
        router = LLMRouter(providers=[_make_provider("gemini")])
        router.report_failure("gemini")
        assert router.provider_health_state["gemini"]["consecutive_failures"] == 1
        router.reset()
        assert router.provider_health_state["gemini"] == {
            "is_healthy": True,
            "consecutive_failures": 0,
            "cooldown_remaining": 0,
        }

    def test_unknown_provider_names_ignored(self):
        router = LLMRouter(providers=[_make_provider("gemini")])
        router.report_failure("nope")
        router.report_success("nope")
        assert router.get_health("nope") is None


class TestProviderHealth:

    def test_cooldown_and_cautious_recovery(self):
        health = ProviderHealth(max_failures=2)
        health.record_failure()
        assert health.is_healthy
        health.record_failure()
        assert not health.is_healthy
        assert health.cooldown_remaining == PROVIDER_COOLDOWN_SKIP_COUNT

        for _ in range(PROVIDER_COOLDOWN_SKIP_COUNT):
            health.tick_cooldown()
        assert health.is_healthy
        assert health.consecutive_failures == 1

        health.record_failure()
        assert not health.is_healthy

    def test_success_clears_failures(self):
        health = ProviderHealth(max_failures=3)
        health.record_failure()
        health.record_failure()
        health.record_success()
        assert health.consecutive_failures == 0


# ===========================================================================
# 2. Client
# ===========================================================================
class TestGenerate:

    def test_no_provider(self):
        client = _make_client()
        assert not client.is_configured()
        response = _run(client.generate(LLMRequest(prompt="x")))
        assert not response.success
        assert response.error == "No AI provider configured"

    def test_primary_succeeds(self):
        client = _make_client(_make_provider("gemini"), _make_provider("groq"))
        usage = {"input_tokens": 1, "output_tokens": 2}
        with patch.object(client, "_call_gemini", new=AsyncMock(return_value=("code", usage))) as gemini, \
             patch.object(client, "_call_openai_compatible", new=AsyncMock()) as openai:
            response = _run(client.generate(LLMRequest(prompt="fix")))
        assert response.success
        assert response.text == "code"
        assert response.provider_name == "gemini"
        assert response.usage == usage
        gemini.assert_awaited_once()
        openai.assert_not_awaited()

    def test_fallback_to_next_provider(self):
        client = _make_client(_make_provider("gemini"), _make_provider("groq"))
        with patch.object(client, "_call_gemini", new=AsyncMock(side_effect=RuntimeError("boom"))) as gemini, \
             patch.object(client, "_call_openai_compatible", new=AsyncMock(return_value=("fixed", {}))):
            response = _run(client.generate(LLMRequest(prompt="fix")))
        assert response.success
        assert response.provider_name == "groq"
        assert gemini.await_count == 2
        assert client.router.get_health("gemini").consecutive_failures == 1
        assert client.router.get_health("groq").consecutive_failures == 0

    def test_all_providers_fail(self):
        client = _make_client(_make_provider("gemini"), _make_provider("groq"))
        with patch.object(client, "_call_gemini", new=AsyncMock(return_value=("", {}))), \
             patch.object(client, "_call_openai_compatible", new=AsyncMock(side_effect=_http_error(500))):
            response = _run(client.generate(LLMRequest(prompt="fix")))
        assert not response.success
        assert response.error == "All providers failed"
        assert response.provider_name == "gemini"


class TestCall:

    def test_rate_limit_skips_remaining_retries(self):
        client = _make_client(_make_provider("gemini", max_retries=3))
        provider = client.router.providers[0]
        with patch.object(client, "_call_gemini", new=AsyncMock(side_effect=_http_error(429))) as gemini:
            response = _run(client.call(LLMRequest(prompt="x"), provider))
        assert not response.success
        assert gemini.await_count == 1

    def test_timeout_is_retried(self):
        client = _make_client(_make_provider("groq", max_retries=2))
        provider = client.router.providers[0]
        side_effect = [httpx.TimeoutException("slow"), ("ok", {})]
        with patch.object(client, "_call_openai_compatible", new=AsyncMock(side_effect=side_effect)) as openai:
            response = _run(client.call(LLMRequest(prompt="x"), provider))
        assert response.success
        assert response.text == "ok"
        assert openai.await_count == 2

    def test_empty_response_exhausts_retries(self):
        client = _make_client(_make_provider("gemini", max_retries=2))
        provider = client.router.providers[0]
        with patch.object(client, "_call_gemini", new=AsyncMock(return_value=("   ", {}))):
            response = _run(client.call(LLMRequest(prompt="x"), provider))
        assert not response.success
        assert response.error == "All 2 retries exhausted for gemini"


class TestProviderPayloads:

    def test_gemini_request_and_parse(self):
        client = _make_client(_make_provider("gemini"))
        provider = client.router.providers[0]
        client._http = _mock_http({
            "candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}],
            "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 4},
        })
        request = LLMRequest(prompt="fix", system_instruction="rules", response_format="json")

        text, usage = _run(client._call_gemini(request, provider))

        assert text == "ab"
        assert usage == {"input_tokens": 3, "output_tokens": 4}
        args, kwargs = client._http.post.call_args
        assert args[0] == "https://gemini.example.com/v1/models/gemini-model:generateContent?key=key"
        payload = kwargs["json"]
        assert payload["contents"][0]["parts"][0]["text"] == "fix"
        assert payload["system_instruction"]["parts"][0]["text"] == "rules"
        assert payload["generationConfig"]["responseMimeType"] == "application/json"

    def test_gemini_no_candidates(self):
        client = _make_client(_make_provider("gemini"))
        client._http = _mock_http({})
        text, usage = _run(client._call_gemini(LLMRequest(prompt="x"), client.router.providers[0]))
        assert text == ""
        assert usage == {"input_tokens": 0, "output_tokens": 0}

    def test_openai_compatible_request_and_parse(self):
        client = _make_client(_make_provider("groq"))
        provider = client.router.providers[0]
        client._http = _mock_http({
            "choices": [{"message": {"content": "hi"}}],
            "usage": {"prompt_tokens": 5, "completion_tokens": 6},
        })
        request = LLMRequest(prompt="fix", system_instruction="rules")

        text, usage = _run(client._call_openai_compatible(request, provider))

        assert text == "hi"
        assert usage == {"input_tokens": 5, "output_tokens": 6}
        args, kwargs = client._http.post.call_args
        assert args[0] == "https://groq.example.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer key"
        assert kwargs["json"]["model"] == "groq-model"
        assert kwargs["json"]["messages"] == [
            {"role": "system", "content": "rules"},
            {"role": "user", "content": "fix"},
        ]
        assert "response_format" not in kwargs["json"]

    def test_close(self):
        client = _make_client(_make_provider("groq"))
        http = _mock_http({})
        client._http = http
        _run(client.close())
        http.aclose.assert_awaited_once()
        assert client._http is None


# ===========================================================================
# 3. Prompts
# ===========================================================================
APP = """\
import React from 'react';
import Header from './components/Header';

export default function App() {
  return (
    <div>
      <Header />
      <Search />
    </div>
  );
}
"""

FILES = {
    "src/App.tsx": APP,
    "src/components/Header.tsx": "export default function Header() { return <header />; }\n",
    "src/types.ts": "export interface Item { id: string }\n",
}


class TestPrompts:

    def test_extract_component_name(self):
        assert extract_component_name(APP) == "App"
        assert extract_component_name("export const Card = () => null;") == "Card"
        assert extract_component_name("const a = 1;") is None

    def test_recent_logs_context(self):
        logs = [{"type": "log", "message": "hello"}]
        logs += [{"type": "error", "message": f"e{i}"} for i in range(12)]
        context = get_recent_logs_context(logs)
        assert "[ERROR] e11" in context
        assert "[ERROR] e1\n" not in context
        assert "hello" not in context
        assert get_recent_logs_context([{"type": "log", "message": "x"}]) == ""
        assert get_recent_logs_context(None) == ""

    def test_quick_prompt(self):
        parsed = error_analyzer.analyze("Header is not defined")
        prompt = build_quick_prompt("Header is not defined", "x" * 20000, parsed)
        assert "Fix this import error" in prompt
        assert 'HINT: Add import or define "Header"' in prompt
        assert "x" * 10000 in prompt
        assert "x" * 10001 not in prompt

    def test_full_prompt(self):
        message = "Transpilation failed for src/App.tsx: Search is not defined (8:7)"
        parsed = error_analyzer.analyze(message, None, FILES)
        prompt = build_full_prompt(
            message,
            "src/App.tsx",
            APP,
            FILES,
            parsed,
            tech_stack_context="Use Tailwind.",
            logs=[{"type": "warn", "message": "careful"}],
        )
        assert "Use Tailwind." in prompt
        assert "- **Location**: src/App.tsx:8:7" in prompt
        assert "- **Error Category**: import" in prompt
        assert "### src/components/Header.tsx" in prompt
        assert "### src/types.ts" in prompt
        assert "[WARN] careful" in prompt
        assert "src/App.tsx, src/components/Header.tsx, src/types.ts" in prompt
        assert CATEGORY_HINTS["import"] in prompt

    def test_iterative_prompt(self):
        prompt = build_iterative_prompt("Boom", "const a = 1;", ["Timeout", "Invalid syntax"])
        assert "PREVIOUS ATTEMPTS FAILED:\n1. Timeout\n2. Invalid syntax" in prompt
        assert "Try a DIFFERENT approach." in prompt
        assert "PREVIOUS ATTEMPTS" not in build_iterative_prompt("Boom", "const a = 1;", [])

    def test_regeneration_prompt(self):
        related = {f"src/F{i}.tsx": f"// file {i}" for i in range(5)}
        prompt = build_regeneration_prompt("Boom", APP, "App", related)
        assert "COMPONENT: App" in prompt
        assert "import React from 'react';\nimport Header from './components/Header';" in prompt
        assert "<Header />" in prompt
        assert "// src/F2.tsx" in prompt
        assert "// src/F3.tsx" not in prompt

"""
LLM Client
==========
Unified asynchronous client wrapper for LLM providers.
Supports Gemini (REST) and OpenAI-compatible endpoints (Groq, OpenRouter).

Request / Response:
    LLMRequest  — prompt, optional system instruction, max_tokens,
                  temperature, response_format ("text" | "json")
    LLMResponse — text, provider_name, token usage, success, error

Provider Fallback:
    - The router picks the first healthy provider
    - On failure the next healthy provider is tried, until none is left
    - Each provider has its own retry budget (ProviderConfig.max_retries)
    - HTTP 429 skips the remaining retries and moves to the next provider

The client never raises for transport errors: every failure surfaces as
an LLMResponse with success=False.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from autofix.llm.router import LLMRouter, ProviderConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / Response
# ---------------------------------------------------------------------------
@dataclass
class LLMRequest:
    """One generation request."""
    prompt: str
    system_instruction: str = ""
    max_tokens: int = 8192
    temperature: float = 0.1
    response_format: str = "text"


@dataclass
class LLMResponse:
    """Result of a generation request."""
    text: str
    provider_name: str
    usage: Dict[str, int] = field(default_factory=dict)
    success: bool = True
    error: str = ""


def _failure(provider_name: str, error: str) -> LLMResponse:
    return LLMResponse(text="", provider_name=provider_name, success=False, error=error)


# ---------------------------------------------------------------------------
# LLM Client
# ---------------------------------------------------------------------------
class LLMClient:
    """
    Async HTTP client for calling LLM providers.

    Usage:
        client = LLMClient()
        if client.is_configured():
            response = await client.generate(LLMRequest(prompt="Fix this code..."))
        await client.close()
    """

    def __init__(self, router: Optional[LLMRouter] = None) -> None:
        self.router = router or LLMRouter()
        self._http: Optional[httpx.AsyncClient] = None

    def is_configured(self) -> bool:
        """False when no provider has an API key."""
        return self.router.has_providers()

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate text with automatic provider fallback.

        Parameters
        ----------
        request : LLMRequest
            Prompt and generation settings.

        Returns
        -------
        LLMResponse
            Response from whichever provider succeeded, or a failure response.
        """
        provider = self.router.get_provider()
        if provider is None:
            return _failure("", "No AI provider configured")

        primary_name = provider.name
        tried: list[str] = []
        while provider is not None:
            tried.append(provider.name)
            response = await self.call(request, provider)
            if response.success and response.text:
                self.router.report_success(provider.name)
                return response
            self.router.report_failure(provider.name)
            provider = self.router.get_fallback_provider(*tried)

        return _failure(primary_name, "All providers failed")

    async def call(self, request: LLMRequest, provider: ProviderConfig) -> LLMResponse:
        """
        Send a request to one provider, retrying up to its retry budget.

        Parameters
        ----------
        request : LLMRequest
            Prompt and generation settings.
        provider : ProviderConfig
            Provider configuration.

        Returns
        -------
        LLMResponse
            Parsed response from the provider.
        """
        for attempt in range(1, provider.max_retries + 1):
            try:
                if provider.name == "gemini":
                    text, usage = await self._call_gemini(request, provider)
                else:
                    text, usage = await self._call_openai_compatible(request, provider)

                if text and text.strip():
                    return LLMResponse(text=text, provider_name=provider.name, usage=usage)

                logger.warning("Provider %s attempt %d: empty response", provider.name, attempt)

            except httpx.TimeoutException:
                logger.warning("Provider %s attempt %d: timeout", provider.name, attempt)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning("Provider %s attempt %d: HTTP %d", provider.name, attempt, status)
                if status == 429:
                    break
            except Exception as e:
                logger.warning("Provider %s attempt %d: %s", provider.name, attempt, e)

        return _failure(provider.name, f"All {provider.max_retries} retries exhausted for {provider.name}")

    async def _call_gemini(self, request: LLMRequest, provider: ProviderConfig) -> tuple[str, Dict[str, int]]:
        """Call Gemini REST API."""
        http = await self._get_http()
        url = f"{provider.base_url}/models/{provider.model}:generateContent?key={provider.api_key}"
        generation_config: Dict[str, Any] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_tokens,
        }
        if request.response_format == "json":
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }
        if request.system_instruction:
            payload["system_instruction"] = {"parts": [{"text": request.system_instruction}]}

        resp = await http.post(url, json=payload, timeout=provider.timeout_seconds)
        resp.raise_for_status()
        data = resp.json()

        text = ""
        try:
            candidates = data.get("candidates", [])
            if candidates:
                parts = candidates[0].get("content", {}).get("parts", [])
                text = "".join(part.get("text", "") for part in parts)
        except (IndexError, KeyError, TypeError, AttributeError):
            text = ""

        meta = data.get("usageMetadata") or {}
        usage = {
            "input_tokens": int(meta.get("promptTokenCount", 0)),
            "output_tokens": int(meta.get("candidatesTokenCount", 0)),
        }
        return text, usage

    async def _call_openai_compatible(
        self, request: LLMRequest, provider: ProviderConfig
    ) -> tuple[str, Dict[str, int]]:
        """Call OpenAI-compatible API (Groq, OpenRouter)."""
        http = await self._get_http()
        url = f"{provider.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {provider.api_key}",
            "Content-Type": "application/json",
        }
        messages = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.prompt})

        payload: Dict[str, Any] = {
            "model": provider.model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.response_format == "json":
            payload["response_format"] = {"type": "json_object"}

        resp = await http.post(url, json=payload, headers=headers, timeout=provider.timeout_seconds)
        resp.raise_for_status()
        data = resp.json()

        text = ""
        try:
            choices = data.get("choices", [])
            if choices:
                text = choices[0].get("message", {}).get("content") or ""
        except (IndexError, KeyError, TypeError, AttributeError):
            text = ""

        raw_usage = data.get("usage") or {}
        usage = {
            "input_tokens": int(raw_usage.get("prompt_tokens", 0)),
            "output_tokens": int(raw_usage.get("completion_tokens", 0)),
        }
        return text, usage

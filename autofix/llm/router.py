"""
LLM Router
==========
Decides which LLM provider to use and manages provider switching.

Routing Strategy:
    1. Gemini first, then Groq, then OpenRouter
    2. Only providers with an API key take part
    3. On failure (HTTP error, timeout, rate limit) → next healthy provider

Provider Health Tracking:
    - Track consecutive failures per provider
    - After PROVIDER_COOLDOWN_THRESHOLD failures in a row the provider is
      skipped for the next PROVIDER_COOLDOWN_SKIP_COUNT selections
    - reset() clears all health counters
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from autofix.core.config import (
    GEMINI_API_KEY, GROQ_API_KEY, OPENROUTER_API_KEY,
    PROVIDER_COOLDOWN_THRESHOLD, PROVIDER_COOLDOWN_SKIP_COUNT,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider Configuration
# ---------------------------------------------------------------------------
@dataclass
class ProviderConfig:
    """Configuration for a single LLM provider."""
    name: str
    api_key: str
    base_url: str
    model: str
    max_retries: int = 2
    timeout_seconds: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def default_providers() -> List[ProviderConfig]:
    """Provider configs in routing order, built from the environment."""
    return [
        ProviderConfig(
            name="gemini",
            api_key=GEMINI_API_KEY or "",
            base_url="https://generativelanguage.googleapis.com/v1beta",
            model="gemini-2.0-flash",
        ),
        ProviderConfig(
            name="groq",
            api_key=GROQ_API_KEY or "",
            base_url="https://api.groq.com/openai/v1",
            model="llama-3.3-70b-versatile",
        ),
        ProviderConfig(
            name="openrouter",
            api_key=OPENROUTER_API_KEY or "",
            base_url="https://openrouter.ai/api/v1",
            model="meta-llama/llama-3.3-70b-instruct:free",
            max_retries=1,
        ),
    ]


# ---------------------------------------------------------------------------
# Provider Health Tracker
# ---------------------------------------------------------------------------
@dataclass
class ProviderHealth:
    """Tracks consecutive failures and cooldown for a provider."""
    consecutive_failures: int = 0
    is_healthy: bool = True
    max_failures: int = PROVIDER_COOLDOWN_THRESHOLD
    cooldown_remaining: int = 0

    def record_failure(self) -> None:
        """Record a failure. Enter cooldown after max consecutive failures."""
        self.consecutive_failures += 1
        if self.consecutive_failures >= self.max_failures:
            self.is_healthy = False
            self.cooldown_remaining = PROVIDER_COOLDOWN_SKIP_COUNT
            logger.warning(
                "Provider entering cooldown after %d failures (skip %d calls)",
                self.consecutive_failures, self.cooldown_remaining,
            )

    def record_success(self) -> None:
        self.consecutive_failures = 0

    def tick_cooldown(self) -> None:
        """Decrement cooldown. Re-enable when it expires."""
        if self.cooldown_remaining > 0:
            self.cooldown_remaining -= 1
            if self.cooldown_remaining <= 0:
                self.is_healthy = True
                # One more failure puts it straight back into cooldown
                self.consecutive_failures = max(1, self.max_failures - 1)
                logger.info("Provider cooldown expired, re-enabled (cautious)")

    def reset(self) -> None:
        self.consecutive_failures = 0
        self.is_healthy = True
        self.cooldown_remaining = 0


# ---------------------------------------------------------------------------
# LLM Router
# ---------------------------------------------------------------------------
class LLMRouter:
    """
    Routes LLM requests to the best available provider.

    Usage:
        router = LLMRouter()
        provider = router.get_provider()
        # ... make request ...
        router.report_success(provider.name)   # or report_failure(...)
    """

    def __init__(self, providers: Optional[List[ProviderConfig]] = None) -> None:
        candidates = providers if providers is not None else default_providers()
        self._providers: List[ProviderConfig] = [p for p in candidates if p.is_configured]
        self._health: Dict[str, ProviderHealth] = {p.name: ProviderHealth() for p in self._providers}

    @property
    def providers(self) -> List[ProviderConfig]:
        return list(self._providers)

    def has_providers(self) -> bool:
        return bool(self._providers)

    def get_provider(self) -> Optional[ProviderConfig]:
        """
        Get the first healthy provider.

        Returns
        -------
        ProviderConfig or None
            The selected provider; the primary one if every provider is in
            cooldown; None if no provider is configured.
        """
        if not self._providers:
            return None

        for h in self._health.values():
            h.tick_cooldown()

        for provider in self._providers:
            if self._health[provider.name].is_healthy:
                logger.debug("Selected provider: %s", provider.name)
                return provider

        logger.warning("All providers unhealthy, falling back to primary")
        return self._providers[0]

    def get_fallback_provider(self, *exclude_names: str) -> Optional[ProviderConfig]:
        """Next healthy provider not in ``exclude_names``, or None."""
        for provider in self._providers:
            if provider.name in exclude_names:
                continue
            if self._health[provider.name].is_healthy:
                logger.info("Falling back to %s (skipping %s)", provider.name, ", ".join(exclude_names))
                return provider
        return None

    def report_success(self, provider_name: str) -> None:
        health = self._health.get(provider_name)
        if health:
            health.record_success()

    def report_failure(self, provider_name: str) -> None:
        health = self._health.get(provider_name)
        if health:
            health.record_failure()

    def reset(self) -> None:
        for health in self._health.values():
            health.reset()

    def get_health(self, provider_name: str) -> Optional[ProviderHealth]:
        return self._health.get(provider_name)

    @property
    def provider_health_state(self) -> Dict[str, Any]:
        """Per-provider health and cooldown, for the health endpoint."""
        return {
            name: {
                "is_healthy": h.is_healthy,
                "consecutive_failures": h.consecutive_failures,
                "cooldown_remaining": h.cooldown_remaining,
            }
            for name, h in self._health.items()
        }

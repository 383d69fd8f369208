"""
API Dependencies
================
Process-wide service instances shared by the HTTP routers.

Created lazily on first use and injected with FastAPI's Depends, so tests
swap them through ``app.dependency_overrides``.
"""
import logging
from functools import lru_cache

from autofix.core.config import ANALYTICS_PATH
from autofix.llm.client import LLMClient
from autofix.services.analytics import FixAnalytics
from autofix.services.fix_state import FixState
from autofix.services.storage import JsonFileStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def get_fix_state() -> FixState:
    return FixState()


@lru_cache(maxsize=None)
def get_analytics() -> FixAnalytics:
    logger.info("Fix analytics stored in %s", ANALYTICS_PATH)
    return FixAnalytics(JsonFileStore(ANALYTICS_PATH))


@lru_cache(maxsize=None)
def get_llm() -> LLMClient:
    client = LLMClient()
    if not client.is_configured():
        logger.warning("No LLM provider configured; AI strategies are disabled")
    return client

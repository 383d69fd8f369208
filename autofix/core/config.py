"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GEMINI_API_KEY          — Gemini provider API key
    GROQ_API_KEY            — Groq provider API key (OpenAI-compatible)
    OPENROUTER_API_KEY      — OpenRouter provider API key (OpenAI-compatible)
    FIX_TOTAL_TIMEOUT       — Overall deadline for one engine run, seconds (default: 90)
    MAX_ATTEMPTS_PER_ERROR  — Engine runs allowed per error signature (default: 3)
    AGENT_MAX_ATTEMPTS      — Attempts per fix-agent session (default: 5)
    ANALYTICS_PATH          — JSON file backing fix analytics (default: fix_analytics.json)
    LOG_DIR                 — Directory for the dated log file (default: logs)

Timeout Philosophy:
    Every awaited language-model call is raced against a timer. Local
    strategies get a small budget, AI strategies grow with the amount of
    context they send, and the whole run is capped by FIX_TOTAL_TIMEOUT.
    A timed-out strategy is a failed strategy, never an engine error.

Attempt Limits:
    MAX_ATTEMPTS_PER_ERROR stops the engine from looping on the same
    normalized error. RECENT_FIX_WINDOW suppresses re-fixing an error that
    was fixed a moment ago while the preview is still reloading.
"""
import os
from dotenv import load_dotenv

load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

# Provider health cooldown
PROVIDER_COOLDOWN_THRESHOLD = int(os.getenv("PROVIDER_COOLDOWN_THRESHOLD", 4))
PROVIDER_COOLDOWN_SKIP_COUNT = int(os.getenv("PROVIDER_COOLDOWN_SKIP_COUNT", 5))

# Strategy timeouts (seconds)
LOCAL_FIX_TIMEOUT = float(os.getenv("LOCAL_FIX_TIMEOUT", 2.0))
AI_QUICK_TIMEOUT = float(os.getenv("AI_QUICK_TIMEOUT", 15.0))
AI_FULL_TIMEOUT = float(os.getenv("AI_FULL_TIMEOUT", 30.0))
AI_ITERATIVE_TIMEOUT = float(os.getenv("AI_ITERATIVE_TIMEOUT", 60.0))
AI_REGENERATE_TIMEOUT = float(os.getenv("AI_REGENERATE_TIMEOUT", 60.0))
FIX_TOTAL_TIMEOUT = float(os.getenv("FIX_TOTAL_TIMEOUT", 90.0))
MAX_ITERATIVE_ROUNDS = int(os.getenv("MAX_ITERATIVE_ROUNDS", 3))
ENGINE_MAX_ATTEMPTS = int(os.getenv("ENGINE_MAX_ATTEMPTS", 10))

# Fix state
MAX_HISTORY_SIZE = int(os.getenv("MAX_HISTORY_SIZE", 50))
MAX_ATTEMPTS_PER_ERROR = int(os.getenv("MAX_ATTEMPTS_PER_ERROR", 3))
RECENT_FIX_WINDOW = float(os.getenv("RECENT_FIX_WINDOW", 5.0))
SIGNATURE_CACHE_TTL = float(os.getenv("SIGNATURE_CACHE_TTL", 30.0))

# Analytics
ANALYTICS_PATH = os.getenv("ANALYTICS_PATH", "fix_analytics.json")
ANALYTICS_STORAGE_KEY = "autofix-fix-analytics"
MAX_RECENT_FIXES = int(os.getenv("MAX_RECENT_FIXES", 100))

# Fix agent
AGENT_MAX_ATTEMPTS = int(os.getenv("AGENT_MAX_ATTEMPTS", 5))
AGENT_SETTLE_DELAY = float(os.getenv("AGENT_SETTLE_DELAY", 2.0))

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")

# HTTP surface
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

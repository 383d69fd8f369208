"""
Constants
Centralised storage for the closed sets shared by the analyzer, fixers and engine.
"""
from typing import Literal, Tuple

# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------
ErrorType = Literal[
    "bare-specifier",
    "module-not-found",
    "undefined-variable",
    "type-error",
    "syntax-error",
    "property-error",
    "jsx-error",
    "hook-error",
    "runtime-error",
    "network-error",
    "unknown",
]

ErrorCategory = Literal[
    "syntax",
    "import",
    "runtime",
    "react",
    "type",
    "jsx",
    "async",
    "transient",
    "network",
    "unknown",
]

# ---------------------------------------------------------------------------
# Fix strategies (escalating cost)
# ---------------------------------------------------------------------------
FixStrategy = Literal[
    "local-simple",
    "local-multifile",
    "local-proactive",
    "ai-quick",
    "ai-full",
    "ai-iterative",
    "ai-regenerate",
]

STRATEGY_ORDER: Tuple[str, ...] = (
    "local-simple",
    "local-multifile",
    "local-proactive",
    "ai-quick",
    "ai-full",
    "ai-iterative",
    "ai-regenerate",
)

AI_STRATEGIES: Tuple[str, ...] = ("ai-quick", "ai-full", "ai-iterative", "ai-regenerate")

# Categories never worth spending language-model calls on
NON_AI_CATEGORIES = frozenset({"transient", "network"})

STRATEGY_LABELS: dict[str, str] = {
    "local-simple": "Quick fix",
    "local-multifile": "Multi-file fix",
    "local-proactive": "Code analysis",
    "ai-quick": "Quick AI",
    "ai-full": "AI analysis",
    "ai-iterative": "Deep AI",
    "ai-regenerate": "Regenerating",
}

LocalFixType = Literal[
    "bare-specifier",
    "missing-import",
    "syntax",
    "undefined-var",
    "jsx",
    "runtime",
    "react",
    "typo",
    "none",
]

# Key used by single-file fixers when the caller did not name the file
CURRENT_FILE_KEY = "current"

# ---------------------------------------------------------------------------
# Fix agent
# ---------------------------------------------------------------------------
AgentState = Literal[
    "idle",
    "analyzing",
    "local-fix",
    "ai-fix",
    "fixing",
    "applying",
    "verifying",
    "success",
    "failed",
    "max_attempts_reached",
]

TERMINAL_AGENT_STATES = frozenset({"success", "failed", "max_attempts_reached"})

LogEntryType = Literal["info", "prompt", "response", "fix", "error", "success", "warning"]

DEFAULT_TARGET_FILE = "src/App.tsx"
SOURCE_ROOT = "src"

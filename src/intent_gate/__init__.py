"""IntentGate - intent-gated authorization and provenance for AI agent tool calls."""

__version__ = "0.1.0"

from .hooks import Allow, Block, HookEngine, ToolCallContext, build_hook_engine
from .state import SessionIntentStore

__all__ = [
    "Allow",
    "Block",
    "HookEngine",
    "SessionIntentStore",
    "ToolCallContext",
    "build_hook_engine",
    "__version__",
]

"""Hook pipeline for intent-gated tool calls.

Key components:
- HookEngine: ordered pre-hooks (fail-closed) and post-hooks (fail-open)
- Gates: intent selection, handshake, write scope, destructive approval
- WriteTraceHook: provenance record for every accepted file write

Usage:
    engine = build_hook_engine(store, workspace, approval_provider)

    outcome = await engine.run_pre_hooks(ctx)
    if not isinstance(outcome, Allow):
        return outcome  # surface Block.message to the agent

    result = await dispatch(ctx)
    await engine.run_post_hooks(PostToolCallContext(call=ctx, result=result))
"""

from .engine import HookEngine, PostHook, PreHook
from .gates import (
    DestructiveApprovalGate,
    Gate,
    HandshakeGate,
    IntentSelectionGate,
    WriteScopeGate,
    extract_patch_targets,
    extract_target_paths,
    summarize_action,
)
from .models import (
    Allow,
    Block,
    HookStage,
    InternalFailure,
    PolicyCode,
    PostToolCallContext,
    PreHookOutcome,
    PreHookResult,
    ToolCallContext,
    WaitForApproval,
)
from .params import InvalidToolParams, parse_tool_params
from .pipeline import build_hook_engine
from .trace import WriteTraceHook

__all__ = [
    # Engine
    "HookEngine",
    "PreHook",
    "PostHook",
    "build_hook_engine",
    # Models
    "Allow",
    "Block",
    "HookStage",
    "InternalFailure",
    "PolicyCode",
    "PostToolCallContext",
    "PreHookOutcome",
    "PreHookResult",
    "ToolCallContext",
    "WaitForApproval",
    "InvalidToolParams",
    "parse_tool_params",
    # Hooks
    "Gate",
    "IntentSelectionGate",
    "HandshakeGate",
    "WriteScopeGate",
    "DestructiveApprovalGate",
    "WriteTraceHook",
    "extract_patch_targets",
    "extract_target_paths",
    "summarize_action",
]

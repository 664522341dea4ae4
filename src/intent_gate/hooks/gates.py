"""Policy gates run as pre-hooks by the hook engine."""

import re
from abc import ABC, abstractmethod
from typing import Any, Protocol

from loguru import logger

from ..capabilities import CapabilityRegistry
from ..config import Config
from ..manifest import find_intent, load_manifest, write_intent_context
from ..scope import load_ignore_patterns, matches_any, normalize_target
from ..state import SessionIntentStore
from ..workspace import WorkspaceResolver
from .models import Allow, Block, InternalFailure, PolicyCode, PreHookResult, ToolCallContext
from .params import (
    ApplyPatchParams,
    ExecuteCommandParams,
    GenericParams,
    SelectIntentParams,
    ToolParams,
)

_PATCH_FILE_MARKER = re.compile(r"^\*\*\* (?:Update|Add|Delete) File:\s+(.+?)\s*$", re.MULTILINE)
_DIFF_TARGET_MARKER = re.compile(r"\+\+\+\s+b/([^\r\n]+)")


class Approver(Protocol):
    async def request_approval(self, prompt: str) -> bool:
        """Return True when a human approves ``prompt``."""


def _block(code: PolicyCode, reason: str, **details: Any) -> Block:
    logger.warning(f"{code.value}: {reason}")
    return Block(code=code, reason=reason, details=details)


class Gate(ABC):
    """Abstract base class for policy gates."""

    name: str = "gate"

    @abstractmethod
    async def check(self, ctx: ToolCallContext) -> PreHookResult:
        """
        Decide whether the tool call may proceed.

        Args:
            ctx: Tool-call request

        Returns:
            Allow, Block, WaitForApproval, or InternalFailure
        """

    async def __call__(self, ctx: ToolCallContext) -> PreHookResult:
        return await self.check(ctx)


class IntentSelectionGate(Gate):
    """
    Validates ``select_active_intent`` calls against the manifest.

    On success the intent context document is written under the workspace
    and returned as the ``intent_context_xml`` payload.
    """

    name = "intent_selection"

    def __init__(self, workspace: WorkspaceResolver):
        self._workspace = workspace

    async def check(self, ctx: ToolCallContext) -> PreHookResult:
        if ctx.tool_name != Config.SELECT_INTENT_TOOL:
            return Allow()

        root = self._workspace.resolve()
        if root is None:
            return _block(
                PolicyCode.NO_WORKSPACE,
                "No workspace folder available to read "
                f"{Config.ORCHESTRATION_DIR}/{Config.ACTIVE_INTENTS_FILE}",
            )

        params = ctx.tool_params
        intent_id = params.intent_id if isinstance(params, SelectIntentParams) else ""
        if not intent_id:
            return _block(PolicyCode.MISSING_INTENT_ID, "You must supply an intent_id.")

        try:
            intents = load_manifest(root, drop_missing_id=True)
            record = find_intent(intents, intent_id)
            if record is None:
                return _block(
                    PolicyCode.INVALID_INTENT,
                    "You must cite a valid active Intent ID.",
                    intent_id=intent_id,
                )
            out_path, document = write_intent_context(root, record)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Intent selection I/O failed: {e}")
            return Block(code=PolicyCode.HOOK_IO_ERROR, reason=str(e))

        logger.info(f"Intent {intent_id} validated, context written to {out_path}")
        return Allow(payload={"intent_context_xml": document})


class HandshakeGate(Gate):
    """
    Requires an active intent before any destructive tool runs.

    A ``select_active_intent`` call binds its id to the session without
    consulting the manifest.
    """

    name = "handshake"

    def __init__(self, store: SessionIntentStore, capabilities: CapabilityRegistry):
        self._store = store
        self._capabilities = capabilities

    async def check(self, ctx: ToolCallContext) -> PreHookResult:
        if ctx.tool_name == Config.SELECT_INTENT_TOOL:
            params = ctx.tool_params
            if isinstance(params, SelectIntentParams) and params.intent_id:
                self._store.set_active_intent(ctx.session_id, params.intent_id)
            return Allow()

        if not self._capabilities.is_destructive(ctx.tool_name):
            return Allow()

        active_intent = self._store.get_active_intent(ctx.session_id)
        if not active_intent:
            return _block(
                PolicyCode.HANDSHAKE_REQUIRED,
                "You must cite a valid active Intent ID. First read "
                f"{Config.ORCHESTRATION_DIR}/{Config.ACTIVE_INTENTS_FILE}, choose intent_id, "
                f"then call {Config.SELECT_INTENT_TOOL}(intent_id) to load intent context.",
                tool=ctx.tool_name,
            )

        return Allow(payload={"active_intent_id": active_intent})


def extract_patch_targets(patch: str) -> list[str]:
    """Paths named by ``*** Update/Add/Delete File:`` markers, then by ``+++ b/`` markers."""
    targets = [m.group(1).strip() for m in _PATCH_FILE_MARKER.finditer(patch)]
    targets += [m.group(1).strip() for m in _DIFF_TARGET_MARKER.finditer(patch)]
    return [t for t in targets if t]


def extract_target_paths(
    tool_name: str, params: ToolParams, capabilities: CapabilityRegistry
) -> list[str]:
    """Every file path a scoped tool call would mutate."""
    if isinstance(params, ApplyPatchParams):
        return extract_patch_targets(params.patch)

    path_param = capabilities.path_param(tool_name)
    if not path_param:
        return []
    if isinstance(params, GenericParams):
        value = params.values.get(path_param)
        value = str(value) if isinstance(value, (str, int, float)) else ""
    else:
        value = getattr(params, path_param, "")
    value = value.strip()
    return [value] if value else []


class WriteScopeGate(Gate):
    """
    Restricts mutating tools to the active intent's owned scope.

    Targets matching a ``.intentignore`` pattern are exempt. An intent
    with an empty owned scope may not mutate anything.
    """

    name = "write_scope"

    def __init__(
        self,
        store: SessionIntentStore,
        workspace: WorkspaceResolver,
        capabilities: CapabilityRegistry,
    ):
        self._store = store
        self._workspace = workspace
        self._capabilities = capabilities

    async def check(self, ctx: ToolCallContext) -> PreHookResult:
        if not self._capabilities.is_scoped(ctx.tool_name):
            return Allow()

        root = self._workspace.resolve()
        if root is None:
            return _block(
                PolicyCode.NO_WORKSPACE, "No workspace folder available for scope enforcement."
            )

        intent_id = self._store.get_active_intent(ctx.session_id)
        if not intent_id:
            return _block(
                PolicyCode.INTENT_REQUIRED,
                "You must cite a valid active Intent ID.",
                tool=ctx.tool_name,
            )

        targets = extract_target_paths(ctx.tool_name, ctx.tool_params, self._capabilities)
        if not targets:
            return Allow()

        try:
            # Keeps id-less entries, unlike intent selection
            intents = load_manifest(root, drop_missing_id=False)
        except (OSError, UnicodeDecodeError) as e:
            return InternalFailure(reason=f"Could not read intent manifest: {e}")

        intent = find_intent(intents, intent_id)
        if intent is None:
            return _block(
                PolicyCode.INVALID_INTENT,
                f"Active intent not found in {Config.ACTIVE_INTENTS_FILE}.",
                intent_id=intent_id,
            )

        scope_patterns = intent.owned_scope
        if not scope_patterns:
            return _block(
                PolicyCode.EMPTY_SCOPE, "Active intent has no owned_scope.", intent_id=intent_id
            )

        ignore_patterns = load_ignore_patterns(root)
        for raw_path in targets:
            target = normalize_target(raw_path, root)
            if ignore_patterns and matches_any(target, ignore_patterns):
                logger.debug(f"{target} exempt from scope check via {Config.INTENT_IGNORE_FILE}")
                continue
            if not matches_any(target, scope_patterns):
                return _block(
                    PolicyCode.SCOPE_VIOLATION,
                    f"Scope Violation: {intent_id} is not authorized to edit [{target}]. "
                    "Request scope expansion.",
                    intent_id=intent_id,
                    file=target,
                    owned_scope=list(scope_patterns),
                )

        return Allow()


def summarize_action(
    tool_name: str, params: ToolParams, capabilities: CapabilityRegistry
) -> str:
    """One-line description of a destructive call for the approval prompt."""
    if isinstance(params, ExecuteCommandParams):
        return f"command={params.command[:Config.COMMAND_SUMMARY_MAX]}"
    if capabilities.path_param(tool_name):
        targets = extract_target_paths(tool_name, params, capabilities)
        return f"file={targets[0] if targets else ''}"
    return "mutating action"


class DestructiveApprovalGate(Gate):
    """Asks a human to approve every destructive tool call."""

    name = "destructive_approval"

    def __init__(
        self,
        store: SessionIntentStore,
        capabilities: CapabilityRegistry,
        approver: Approver,
    ):
        self._store = store
        self._capabilities = capabilities
        self._approver = approver

    async def check(self, ctx: ToolCallContext) -> PreHookResult:
        if not self._capabilities.is_destructive(ctx.tool_name):
            return Allow()

        active_intent = self._store.get_active_intent(ctx.session_id) or "UNKNOWN"
        summary = summarize_action(ctx.tool_name, ctx.tool_params, self._capabilities)
        prompt = (
            f"Approve destructive action? intent={active_intent} "
            f"tool={ctx.tool_name} {summary}"
        )

        approved = await self._approver.request_approval(prompt)
        if not approved:
            return _block(
                PolicyCode.USER_REJECTED,
                "User rejected destructive tool execution.",
                intent_id=active_intent,
                tool=ctx.tool_name,
            )

        logger.info(f"Destructive call {ctx.tool_name} approved for intent {active_intent}")
        return Allow()

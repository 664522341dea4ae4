"""Hook engine: ordered pre-hooks and failure-isolated post-hooks."""

import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from loguru import logger

from ..governance.approval import ApprovalProvider
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

PreHook = Callable[[ToolCallContext], Union[PreHookResult, Awaitable[PreHookResult]]]
PostHook = Callable[[PostToolCallContext], Union[None, Awaitable[None]]]


def _hook_name(hook: Callable) -> str:
    return getattr(hook, "name", None) or getattr(hook, "__name__", None) or type(hook).__name__


async def _invoke(hook: Callable, ctx: Any) -> Any:
    result = hook(ctx)
    if inspect.isawaitable(result):
        result = await result
    return result


class HookEngine:
    """
    Central orchestrator for tool-call policy hooks.

    Features:
    - Pre-hooks run strictly in registration order; the first Block or
      WaitForApproval stops the chain and is returned
    - Fail-closed: InternalFailure, malformed tool parameters, hook
      exceptions and unknown results all become Block(HOOK_ERROR)
    - Post-hooks all run; each failure is logged and never propagates
    - Allow payloads are merged in order, later keys winning
    """

    def __init__(self, approval_provider: Optional[ApprovalProvider] = None):
        self._hooks: dict[HookStage, list[Callable]] = {
            HookStage.PRE_TOOL_CALL: [],
            HookStage.POST_TOOL_CALL: [],
        }
        self.approval_provider = approval_provider

    def register_pre_hook(self, hook: PreHook) -> None:
        self._hooks[HookStage.PRE_TOOL_CALL].append(hook)

    def unregister_pre_hook(self, hook: PreHook) -> bool:
        return self._unregister(HookStage.PRE_TOOL_CALL, hook)

    def register_post_hook(self, hook: PostHook) -> None:
        self._hooks[HookStage.POST_TOOL_CALL].append(hook)

    def unregister_post_hook(self, hook: PostHook) -> bool:
        return self._unregister(HookStage.POST_TOOL_CALL, hook)

    def _unregister(self, stage: HookStage, hook: Callable) -> bool:
        """Remove every registration of ``hook`` by identity; unknown hooks are a no-op."""
        hooks = self._hooks[stage]
        remaining = [h for h in hooks if h is not hook]
        self._hooks[stage] = remaining
        return len(remaining) < len(hooks)

    def hook_count(self, stage: HookStage) -> int:
        return len(self._hooks[stage])

    async def run_pre_hooks(self, ctx: ToolCallContext) -> PreHookOutcome:
        """
        Run pre-hooks in order and return the aggregate outcome.

        Args:
            ctx: Tool-call request

        Returns:
            The first Block/WaitForApproval, otherwise Allow with merged payloads
        """
        try:
            parse_tool_params(ctx.tool_name, ctx.params)
        except InvalidToolParams as e:
            logger.warning(f"Rejected malformed parameters for {ctx.tool_name}: {e}")
            return Block(code=PolicyCode.HOOK_ERROR, reason=str(e), details={"tool": ctx.tool_name})

        payload: dict[str, Any] = {}
        for hook in list(self._hooks[HookStage.PRE_TOOL_CALL]):
            name = _hook_name(hook)
            try:
                result = await _invoke(hook, ctx)
            except Exception as e:
                logger.error(f"Pre-hook {name} raised for {ctx.tool_name}: {e}")
                return Block(code=PolicyCode.HOOK_ERROR, reason=str(e), details={"hook": name})

            if isinstance(result, Allow):
                payload.update(result.payload)
                continue
            if isinstance(result, (Block, WaitForApproval)):
                logger.info(f"Pre-hook {name} stopped {ctx.tool_name}: {result}")
                return result
            if isinstance(result, InternalFailure):
                logger.error(f"Pre-hook {name} failed for {ctx.tool_name}: {result.reason}")
                return Block(
                    code=PolicyCode.HOOK_ERROR, reason=result.reason, details={"hook": name}
                )

            logger.error(f"Pre-hook {name} returned unsupported result {result!r}")
            return Block(
                code=PolicyCode.HOOK_ERROR,
                reason=f"Hook {name} returned an unsupported result",
                details={"hook": name},
            )

        return Allow(payload=payload)

    async def run_post_hooks(self, ctx: PostToolCallContext) -> None:
        """Run every post-hook; failures are logged and never reach the caller."""
        for hook in list(self._hooks[HookStage.POST_TOOL_CALL]):
            try:
                await _invoke(hook, ctx)
            except Exception as e:
                logger.error(f"Post-hook {_hook_name(hook)} failed for {ctx.tool_name}: {e}")

    async def evaluate(
        self,
        tool_name: str,
        params: Optional[Mapping[str, Any]] = None,
        session_id: Optional[str] = None,
        intent_id: Optional[str] = None,
    ) -> PreHookOutcome:
        """Build a ToolCallContext and run the pre-hooks on it."""
        ctx = ToolCallContext(
            tool_name=tool_name,
            params=dict(params or {}),
            intent_id=intent_id,
            session_id=session_id,
        )
        return await self.run_pre_hooks(ctx)

    async def request_approval(self, prompt: str) -> bool:
        """
        Ask the configured approval provider; may wait indefinitely.

        Raises:
            RuntimeError: If no approval provider is configured
        """
        if self.approval_provider is None:
            raise RuntimeError("No approval provider configured")
        logger.info(f"Requesting approval via {self.approval_provider.get_name()}: {prompt}")
        return await self.approval_provider.request_approval(prompt)

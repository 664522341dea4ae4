"""FastMCP middleware that routes every tool call through the hook pipeline."""

from typing import Any, Optional

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext
from loguru import logger

from .governance.approval import FastMCPElicitProvider
from .hooks import Allow, Block, HookEngine, PostToolCallContext, ToolCallContext


def _session_id(fastmcp_context: Any) -> Optional[str]:
    if fastmcp_context is None:
        return None
    try:
        value = fastmcp_context.session_id
    except Exception:
        return None
    return str(value) if value is not None else None


class IntentGateMiddleware(Middleware):
    """
    FastMCP middleware enforcing intent policies.

    Enforcement paths:
    - Allow: execute the tool, then run post-hooks with its result
    - Block: raise ToolError carrying the policy-violation document
    - WaitForApproval: raise ToolError naming the pending approval

    Post-hooks only run for tools that executed successfully.
    """

    def __init__(self, engine: HookEngine):
        self._engine = engine

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        """
        Intercept tool calls and enforce the pre-hook pipeline.

        Args:
            context: Middleware context holding the CallToolRequest params
            call_next: Next middleware in chain

        Returns:
            Tool result if allowed

        Raises:
            ToolError: If the call is blocked or awaiting approval
        """
        message = context.message
        if isinstance(self._engine.approval_provider, FastMCPElicitProvider):
            self._engine.approval_provider.set_context(context.fastmcp_context)

        call = ToolCallContext(
            tool_name=message.name,
            params=dict(message.arguments or {}),
            session_id=_session_id(context.fastmcp_context),
        )

        outcome = await self._engine.run_pre_hooks(call)
        if isinstance(outcome, Block):
            logger.warning(f"Blocked {call.tool_name} (session: {call.session_id}): {outcome}")
            raise ToolError(outcome.message)
        if not isinstance(outcome, Allow):
            raise ToolError(
                f"Tool '{call.tool_name}' is awaiting approval {outcome.approval_id}"
            )

        result = await call_next(context)
        await self._engine.run_post_hooks(PostToolCallContext(call=call, result=result))
        return result

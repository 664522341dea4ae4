"""Post-hook recording accepted file writes in the workspace trace log."""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

from ..audit import UNKNOWN_INTENT, TraceLogger, build_trace_record
from ..config import Config
from ..state import SessionIntentStore
from ..workspace import WorkspaceResolver, resolve_git_revision
from .models import PostToolCallContext
from .params import WriteToFileParams

RevisionResolver = Callable[..., Awaitable[str]]


class WriteTraceHook:
    """
    Appends one trace record per completed ``write_to_file`` call.

    Calls missing a path, content or mutation class are not traced.
    Append failures propagate to the engine, which logs and absorbs them.
    """

    name = "write_trace"

    def __init__(
        self,
        store: SessionIntentStore,
        workspace: WorkspaceResolver,
        revision_resolver: RevisionResolver = resolve_git_revision,
        trace_logger: Optional[TraceLogger] = None,
    ):
        self._store = store
        self._workspace = workspace
        self._resolve_revision = revision_resolver
        self._trace_logger = trace_logger

    def _owning_intent(self, ctx: PostToolCallContext, params: WriteToFileParams) -> str:
        explicit = params.intent_id.strip() or (ctx.call.intent_id or "").strip()
        return explicit or self._store.get_active_intent(ctx.session_id) or UNKNOWN_INTENT

    async def __call__(self, ctx: PostToolCallContext) -> None:
        if ctx.tool_name != "write_to_file":
            return
        params = ctx.call.tool_params
        if not isinstance(params, WriteToFileParams):
            return

        write_path = params.path.strip()
        mutation_class = params.mutation_class.strip()
        if not write_path or not params.content or not mutation_class:
            return

        root = self._workspace.resolve()
        if root is None:
            logger.debug("No workspace; skipping write trace")
            return

        record = build_trace_record(
            relative_path=write_path,
            content=params.content,
            mutation_class=mutation_class,
            intent_id=self._owning_intent(ctx, params),
            revision=await self._resolve_revision(root),
            session_id=ctx.session_id,
            model_identifier=Config.MODEL_IDENTIFIER,
        )
        trace_logger = self._trace_logger or TraceLogger.for_workspace(root)
        await asyncio.to_thread(trace_logger.append, record)
        logger.debug(f"Traced write of {write_path} as record {record['id']}")

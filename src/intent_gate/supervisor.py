"""FastMCP server exposing intent selection behind the intent gate middleware."""

import sys
from typing import Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger

from .config import Config
from .governance.approval import ApprovalProviderFactory
from .hooks import HookEngine, build_hook_engine
from .middleware import IntentGateMiddleware
from .workspace import ConfigWorkspaceResolver, WorkspaceResolver

SERVER_NAME = "IntentGate"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> | <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None) -> None:
    """Route loguru to stderr (stdout carries the stdio transport) and optionally a file."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level or Config.LOG_LEVEL)
    if Config.LOG_FILE:
        logger.add(
            Config.LOG_FILE,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            level="DEBUG",
        )


def create_server(
    engine: Optional[HookEngine] = None,
    workspace: Optional[WorkspaceResolver] = None,
) -> FastMCP:
    """
    Build the FastMCP server.

    Every tool call passes through IntentGateMiddleware. Servers hosting
    mutating tools can reuse the same middleware with their own engine.
    """
    workspace = workspace if workspace is not None else ConfigWorkspaceResolver()
    if engine is None:
        engine = build_hook_engine(
            workspace=workspace,
            approval_provider=ApprovalProviderFactory.for_server(Config.APPROVAL_PROVIDER),
        )

    mcp = FastMCP(name=SERVER_NAME, middleware=[IntentGateMiddleware(engine)])

    @mcp.tool(name=Config.SELECT_INTENT_TOOL)
    def select_active_intent(intent_id: Optional[str] = None, id: Optional[str] = None) -> str:
        """
        Bind an active intent to this session and load its context.

        Read .orchestration/active_intents.yaml first and pick the id of the
        intent you are working on. Mutating tools are refused until an
        intent is selected, and writes are confined to its owned_scope.

        Args:
            intent_id: Id of an entry in the intent manifest
            id: Accepted in place of intent_id

        Returns:
            The intent context document (name, status, scope, constraints,
            acceptance criteria)
        """
        root = workspace.resolve()
        if root is None:
            raise ToolError("No workspace folder available")
        selected = intent_id if intent_id is not None else id
        if not selected or not selected.strip():
            raise ToolError("intent_id is required")
        context_path = Config.context_path(root, selected.strip())
        try:
            return context_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ToolError(f"Intent context unavailable: {e}")

    return mcp


def main():
    """
    Main entry point for the IntentGate server.

    Configures:
    - Loguru for structured logging
    - Transport from Config.TRANSPORT (stdio, sse or http)
    """
    configure_logging()
    Config.validate()

    mcp = create_server()
    logger.info(f"Starting {SERVER_NAME} ({Config.TRANSPORT})...")

    try:
        if Config.TRANSPORT == "stdio":
            mcp.run(transport="stdio")
        else:
            mcp.run(transport=Config.TRANSPORT, host=Config.HOST, port=Config.PORT)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

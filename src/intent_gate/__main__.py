"""
Entry point for running intent_gate as a module.

    python -m intent_gate serve
    python -m intent_gate check --tool write_to_file \\
        --params '{"path": "src/a.py", "content": "x"}' --intent INT-1 --workspace .
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .config import Config
from .governance.approval import (
    ApprovalProvider,
    StaticApprovalProvider,
    TerminalPromptProvider,
)
from .hooks import Allow, Block, PreHookOutcome, build_hook_engine
from .state import SessionIntentStore
from .supervisor import configure_logging, main as serve
from .workspace import ConfigWorkspaceResolver, StaticWorkspaceResolver

EXIT_ALLOW = 0
EXIT_ERROR = 1
EXIT_BLOCK = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intent_gate",
        description="Intent-gated tool-call policy server and checker",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the FastMCP server")

    check = subparsers.add_parser("check", help="Evaluate one tool call against the pre-hooks")
    check.add_argument("--tool", required=True, help="Tool name, e.g. write_to_file")
    check.add_argument("--params", default="{}", help="Tool parameters as a JSON object")
    check.add_argument("--session", default=None, help="Session id (default: global)")
    check.add_argument(
        "--intent",
        default=None,
        help="Intent id to bind to the session before the check",
    )
    check.add_argument(
        "--workspace",
        default=None,
        help="Workspace root (default: WORKSPACE_ROOT)",
    )
    check.add_argument(
        "--approval",
        choices=["terminal", "approve", "reject"],
        default="terminal",
        help="How destructive actions are approved (default: terminal prompt)",
    )
    return parser


def _approval_provider(choice: str) -> ApprovalProvider:
    if choice == "approve":
        return StaticApprovalProvider(approve=True)
    if choice == "reject":
        return StaticApprovalProvider(approve=False)
    return TerminalPromptProvider()


def outcome_to_dict(outcome: PreHookOutcome) -> dict:
    if isinstance(outcome, Allow):
        return {"status": "allow", "payload": outcome.payload}
    if isinstance(outcome, Block):
        return outcome.to_dict()
    return {"status": "pending", "approval_id": outcome.approval_id}


async def run_check(args: argparse.Namespace) -> tuple[PreHookOutcome, int]:
    """Evaluate one tool call; returns the outcome and the process exit code."""
    params = json.loads(args.params)
    if not isinstance(params, dict):
        raise ValueError("--params must be a JSON object")

    store = SessionIntentStore()
    if args.intent:
        store.set_active_intent(args.session, args.intent)

    workspace = (
        StaticWorkspaceResolver(args.workspace) if args.workspace else ConfigWorkspaceResolver()
    )
    engine = build_hook_engine(
        store=store,
        workspace=workspace,
        approval_provider=_approval_provider(args.approval),
    )
    outcome = await engine.evaluate(args.tool, params, session_id=args.session)
    return outcome, EXIT_ALLOW if isinstance(outcome, Allow) else EXIT_BLOCK


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        serve()
        return EXIT_ALLOW

    configure_logging(Config.LOG_LEVEL)
    try:
        outcome, exit_code = asyncio.run(run_check(args))
    except ValueError as e:
        print(f"Invalid --params: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(json.dumps(outcome_to_dict(outcome), indent=2))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())

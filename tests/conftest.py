"""Pytest fixtures and test utilities for the IntentGate test suite."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from intent_gate.audit import TraceLogger
from intent_gate.capabilities import CapabilityRegistry
from intent_gate.config import Config
from intent_gate.governance.approval import StaticApprovalProvider
from intent_gate.hooks import ToolCallContext, build_hook_engine
from intent_gate.state import SessionIntentStore
from intent_gate.workspace import StaticWorkspaceResolver


# ============================================================================
# MANIFEST FIXTURES
# ============================================================================

SAMPLE_MANIFEST = """\
# Intents for the current sprint
active_intents:
  - id: "I-1"
    name: Feature work
    status: IN_PROGRESS
    owned_scope:
      - "src/feature/**"
      - "docs/*.md"
    constraints:
      - Keep the public API stable
    acceptance_criteria:
      - Unit tests pass
  - id: "I-EMPTY"
    name: Planning only
    status: DRAFT
    owned_scope:
  - name: Unnamed draft
    owned_scope:
      - "scratch/**"
"""


def write_manifest(root: Path, text: str = SAMPLE_MANIFEST) -> Path:
    """Write manifest text to the workspace's manifest location."""
    manifest_path = Config.manifest_path(root)
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text(text, encoding="utf-8")
    return manifest_path


def read_trace_log(root: Path) -> List[Dict[str, Any]]:
    """
    Read every trace record written under a workspace.

    Returns:
        Parsed records in file order (empty if no log exists)
    """
    log_path = Config.trace_path(root)
    if not log_path.exists():
        return []
    return [json.loads(line) for line in log_path.read_text().splitlines() if line.strip()]


@pytest.fixture
def workspace(tmp_path):
    """Workspace root containing the sample manifest."""
    write_manifest(tmp_path)
    return tmp_path


@pytest.fixture
def workspace_resolver(workspace):
    return StaticWorkspaceResolver(workspace)


@pytest.fixture
def no_workspace():
    """Resolver reporting that no workspace is open."""
    return StaticWorkspaceResolver(None)


# ============================================================================
# STATE & POLICY FIXTURES
# ============================================================================


@pytest.fixture
def store():
    """Fresh, empty session store per test."""
    return SessionIntentStore()


@pytest.fixture
def capabilities():
    return CapabilityRegistry()


@pytest.fixture
def approve_all():
    return StaticApprovalProvider(approve=True)


@pytest.fixture
def reject_all():
    return StaticApprovalProvider(approve=False)


@pytest.fixture
def fixed_revision():
    """Revision resolver stub that always reports the same commit."""
    return AsyncMock(return_value="abc123")


@pytest.fixture
def engine(store, workspace_resolver, approve_all, capabilities, fixed_revision):
    """Fully assembled pipeline over the sample workspace."""
    return build_hook_engine(
        store=store,
        workspace=workspace_resolver,
        approval_provider=approve_all,
        capabilities=capabilities,
        revision_resolver=fixed_revision,
    )


@pytest.fixture
def trace_logger(workspace):
    return TraceLogger.for_workspace(workspace)


def make_ctx(
    tool_name: str,
    params: Optional[Dict[str, Any]] = None,
    session_id: Optional[str] = "session-1",
    intent_id: Optional[str] = None,
) -> ToolCallContext:
    """Build a tool-call context with test defaults."""
    return ToolCallContext(
        tool_name=tool_name,
        params=params or {},
        intent_id=intent_id,
        session_id=session_id,
    )

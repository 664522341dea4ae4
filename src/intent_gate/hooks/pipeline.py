"""Default assembly of the intent gate hook pipeline."""

from typing import Optional

from ..audit import TraceLogger
from ..capabilities import CapabilityRegistry
from ..config import Config
from ..governance.approval import ApprovalProvider
from ..state import SessionIntentStore
from ..workspace import ConfigWorkspaceResolver, WorkspaceResolver, resolve_git_revision
from .engine import HookEngine
from .gates import DestructiveApprovalGate, HandshakeGate, IntentSelectionGate, WriteScopeGate
from .trace import RevisionResolver, WriteTraceHook


def build_hook_engine(
    store: Optional[SessionIntentStore] = None,
    workspace: Optional[WorkspaceResolver] = None,
    approval_provider: Optional[ApprovalProvider] = None,
    capabilities: Optional[CapabilityRegistry] = None,
    trace_logger: Optional[TraceLogger] = None,
    revision_resolver: RevisionResolver = resolve_git_revision,
) -> HookEngine:
    """
    Build a HookEngine with the standard hooks registered.

    Pre-hook order matters: selection validates before the handshake
    binds the id, and the binding must exist before scope and approval
    checks read it.
    """
    store = store if store is not None else SessionIntentStore()
    workspace = workspace if workspace is not None else ConfigWorkspaceResolver()
    if capabilities is None:
        capabilities = CapabilityRegistry.from_yaml(Config.CAPABILITIES_YAML_PATH)

    engine = HookEngine(approval_provider=approval_provider)
    engine.register_pre_hook(IntentSelectionGate(workspace))
    engine.register_pre_hook(HandshakeGate(store, capabilities))
    engine.register_pre_hook(WriteScopeGate(store, workspace, capabilities))
    engine.register_pre_hook(DestructiveApprovalGate(store, capabilities, engine))
    engine.register_post_hook(
        WriteTraceHook(store, workspace, revision_resolver, trace_logger)
    )
    return engine

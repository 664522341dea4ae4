"""Human-approval providers for destructive tool calls."""

from .approval import (
    ApprovalProvider,
    ApprovalProviderFactory,
    AutoApprovalProvider,
    FastMCPElicitProvider,
    StaticApprovalProvider,
    SystemdFallbackProvider,
    TerminalPromptProvider,
    create_approval_provider,
    parse_decision,
)

__all__ = [
    "ApprovalProvider",
    "ApprovalProviderFactory",
    "AutoApprovalProvider",
    "FastMCPElicitProvider",
    "StaticApprovalProvider",
    "SystemdFallbackProvider",
    "TerminalPromptProvider",
    "create_approval_provider",
    "parse_decision",
]

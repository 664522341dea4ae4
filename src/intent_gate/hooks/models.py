"""Hook system models for the intent gate pipeline."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .params import ToolParams, parse_tool_params

DEFAULT_SUGGESTION = "Adjust the tool call and retry."


class HookStage(str, Enum):
    """Hook execution stages in the tool call lifecycle."""

    PRE_TOOL_CALL = "pre_tool_call"
    POST_TOOL_CALL = "post_tool_call"


class PolicyCode(str, Enum):
    """Codes carried by blocking outcomes."""

    # Environment
    NO_WORKSPACE = "NO_WORKSPACE"
    # Handshake
    HANDSHAKE_REQUIRED = "HANDSHAKE_REQUIRED"
    # Intent validation
    MISSING_INTENT_ID = "MISSING_INTENT_ID"
    INVALID_INTENT = "INVALID_INTENT"
    EMPTY_SCOPE = "EMPTY_SCOPE"
    # Authorization
    SCOPE_VIOLATION = "SCOPE_VIOLATION"
    USER_REJECTED = "USER_REJECTED"
    INTENT_REQUIRED = "INTENT_REQUIRED"
    # I/O
    HOOK_IO_ERROR = "HOOK_IO_ERROR"
    # Internal
    HOOK_ERROR = "HOOK_ERROR"


@dataclass(frozen=True)
class ToolCallContext:
    """
    One tool-call request as seen by the hooks.

    Immutable per request. ``params`` is the raw argument mapping;
    ``tool_params`` is its validated per-tool shape.
    """

    tool_name: str
    params: Mapping[str, Any] = field(default_factory=dict)
    intent_id: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def tool_params(self) -> ToolParams:
        """Typed parameters for this tool (raises InvalidToolParams)."""
        return parse_tool_params(self.tool_name, self.params)


@dataclass(frozen=True)
class PostToolCallContext:
    """A completed tool call: the original request plus the tool result."""

    call: ToolCallContext
    result: Any = None

    @property
    def tool_name(self) -> str:
        return self.call.tool_name

    @property
    def session_id(self) -> Optional[str]:
        return self.call.session_id


@dataclass(frozen=True)
class Allow:
    """Let the tool call proceed, optionally with context for the caller."""

    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Block:
    """
    Machine-readable policy violation.

    ``message`` renders the structured document that is surfaced to the
    calling agent verbatim.
    """

    code: PolicyCode
    reason: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = DEFAULT_SUGGESTION

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": "error",
            "type": "policy_violation",
            "code": self.code.value,
            "message": self.reason,
            "details": self.details,
            "suggestion": self.suggestion,
        }

    @property
    def message(self) -> str:
        return json.dumps(self.to_dict())

    def __str__(self) -> str:
        return f"Block({self.code.value}): {self.reason}"


@dataclass(frozen=True)
class WaitForApproval:
    """Suspend the call until an out-of-band approval resolves."""

    approval_id: str


@dataclass(frozen=True)
class InternalFailure:
    """A hook could not reach a decision; the engine fails closed on it."""

    reason: str


PreHookOutcome = Union[Allow, Block, WaitForApproval]
PreHookResult = Union[Allow, Block, WaitForApproval, InternalFailure]

"""Per-tool parameter shapes validated at the pipeline boundary."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


class InvalidToolParams(ValueError):
    """Raised when a recognized tool receives parameters of the wrong shape."""


@dataclass(frozen=True)
class WriteToFileParams:
    path: str
    content: str
    mutation_class: str = ""
    intent_id: str = ""


@dataclass(frozen=True)
class PathEditParams:
    """Single-target tools addressed by ``path`` (apply_diff)."""

    path: str


@dataclass(frozen=True)
class FileEditParams:
    """Single-target tools addressed by ``file_path`` (edit family)."""

    file_path: str


@dataclass(frozen=True)
class ApplyPatchParams:
    patch: str


@dataclass(frozen=True)
class ExecuteCommandParams:
    command: str


@dataclass(frozen=True)
class SelectIntentParams:
    intent_id: str


@dataclass(frozen=True)
class GenericParams:
    """Fallback for tools without a declared shape."""

    values: dict[str, Any] = field(default_factory=dict)


ToolParams = Union[
    WriteToFileParams,
    PathEditParams,
    FileEditParams,
    ApplyPatchParams,
    ExecuteCommandParams,
    SelectIntentParams,
    GenericParams,
]


def _text(tool_name: str, raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    raise InvalidToolParams(
        f"Parameter '{key}' of tool '{tool_name}' must be a scalar, "
        f"got {type(value).__name__}"
    )


def parse_tool_params(tool_name: str, raw: Mapping[str, Any]) -> ToolParams:
    """
    Build the typed parameter shape for a tool call.

    Scalars are coerced to ``str`` and absent values become ``""``.
    Unrecognized tool names get a GenericParams copy of the mapping.

    Raises:
        InvalidToolParams: If ``raw`` is not a mapping, or a string field
            holds a mapping/sequence.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise InvalidToolParams(
            f"Parameters of tool '{tool_name}' must be a mapping, got {type(raw).__name__}"
        )

    if tool_name == "write_to_file":
        return WriteToFileParams(
            path=_text(tool_name, raw, "path"),
            content=_text(tool_name, raw, "content"),
            mutation_class=_text(tool_name, raw, "mutation_class"),
            intent_id=_text(tool_name, raw, "intent_id"),
        )
    if tool_name == "apply_diff":
        return PathEditParams(path=_text(tool_name, raw, "path"))
    if tool_name in {"edit", "edit_file", "search_and_replace", "search_replace"}:
        return FileEditParams(file_path=_text(tool_name, raw, "file_path"))
    if tool_name == "apply_patch":
        return ApplyPatchParams(patch=_text(tool_name, raw, "patch"))
    if tool_name == "execute_command":
        return ExecuteCommandParams(command=_text(tool_name, raw, "command"))
    if tool_name == "select_active_intent":
        # intent_id wins whenever it is present, even if blank
        key = "intent_id" if raw.get("intent_id") is not None else "id"
        return SelectIntentParams(intent_id=_text(tool_name, raw, key).strip())
    return GenericParams(values=dict(raw))

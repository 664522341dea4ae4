"""Tool capability registry shared by the policy hooks."""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

import yaml
from loguru import logger


@dataclass(frozen=True)
class ToolCapability:
    """
    What the policy hooks need to know about one tool.

    Attributes:
        destructive: Requires a handshake and human approval
        scoped: Target paths must fall inside the active intent's owned scope
        path_param: Parameter naming the single target file, if any
    """

    destructive: bool = False
    scoped: bool = False
    path_param: Optional[str] = None


# The destructive and scoped sets overlap only partially; keep both flags
# per tool rather than deriving one from the other.
DEFAULT_CAPABILITIES: dict[str, ToolCapability] = {
    "write_to_file": ToolCapability(destructive=True, scoped=True, path_param="path"),
    "apply_diff": ToolCapability(destructive=True, scoped=True, path_param="path"),
    "edit_file": ToolCapability(destructive=True, scoped=True, path_param="file_path"),
    "apply_patch": ToolCapability(destructive=True, scoped=True),
    "execute_command": ToolCapability(destructive=True),
    "edit": ToolCapability(scoped=True, path_param="file_path"),
    "search_and_replace": ToolCapability(scoped=True, path_param="file_path"),
    "search_replace": ToolCapability(scoped=True, path_param="file_path"),
}


class CapabilityRegistry:
    """
    Lookup of tool capabilities.

    Unknown tools are neither destructive nor scoped.
    """

    def __init__(self, capabilities: Optional[dict[str, ToolCapability]] = None):
        self._capabilities = dict(
            DEFAULT_CAPABILITIES if capabilities is None else capabilities
        )

    def get(self, tool_name: str) -> ToolCapability:
        return self._capabilities.get(tool_name, ToolCapability())

    def is_destructive(self, tool_name: str) -> bool:
        return self.get(tool_name).destructive

    def is_scoped(self, tool_name: str) -> bool:
        return self.get(tool_name).scoped

    def path_param(self, tool_name: str) -> Optional[str]:
        return self.get(tool_name).path_param

    @property
    def destructive_tools(self) -> frozenset[str]:
        return frozenset(n for n, c in self._capabilities.items() if c.destructive)

    @property
    def scoped_tools(self) -> frozenset[str]:
        return frozenset(n for n, c in self._capabilities.items() if c.scoped)

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]]) -> "CapabilityRegistry":
        """
        Load capability overrides from YAML on top of the defaults.

        Expected shape::

            tools:
              write_to_file: {destructive: true, scoped: true, path_param: path}
              delete_file: {destructive: true}

        A missing, empty or malformed file leaves the defaults in place.
        """
        registry = cls()
        if not config_path:
            return registry

        path = Path(config_path)
        if not path.exists():
            logger.debug(f"Capability config not found at {path}, using defaults")
            return registry

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse capability config: {e}")
            return registry
        except OSError as e:
            logger.error(f"Failed to read capability config: {e}")
            return registry

        if not data:
            logger.debug("Capability config is empty, using defaults")
            return registry

        tools = data.get("tools") if isinstance(data, dict) else None
        if not isinstance(tools, dict):
            logger.error(f"Capability config {path} has no 'tools' mapping, using defaults")
            return registry

        for tool_name, entry in tools.items():
            if not isinstance(entry, dict):
                logger.error(f"Invalid capability entry for {tool_name}: {entry!r}")
                continue
            current = registry.get(str(tool_name))
            registry._capabilities[str(tool_name)] = replace(
                current,
                destructive=bool(entry.get("destructive", current.destructive)),
                scoped=bool(entry.get("scoped", current.scoped)),
                path_param=entry.get("path_param", current.path_param),
            )
            logger.debug(f"Loaded capability override: {tool_name}")

        logger.info(f"Capability registry loaded {len(tools)} overrides from {path}")
        return registry

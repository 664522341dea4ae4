"""Centralized configuration for IntentGate."""

import os
from pathlib import Path
from typing import Optional


class Config:
    """
    IntentGate configuration with environment variable overrides.

    All configuration values are centralized here with sensible defaults.
    Values can be overridden via environment variables.
    """

    @staticmethod
    def _parse_port(port_str: str) -> int:
        """Parse and validate port number from string."""
        try:
            port = int(port_str)
            if not (1 <= port <= 65535):
                raise ValueError(f"Port must be 1-65535, got {port}")
            return port
        except ValueError as e:
            raise ValueError(f"Invalid PORT environment variable: {e}")

    # ========================================================================
    # Server Configuration
    # ========================================================================
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = _parse_port.__func__(os.getenv("PORT", "8002"))
    TRANSPORT: str = os.getenv("TRANSPORT", "stdio")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    # ========================================================================
    # Workspace Layout
    # ========================================================================
    WORKSPACE_ROOT: Optional[str] = os.getenv("WORKSPACE_ROOT") or None
    ORCHESTRATION_DIR: str = ".orchestration"
    ACTIVE_INTENTS_FILE: str = "active_intents.yaml"
    INTENT_CONTEXTS_DIR: str = "intent_contexts"
    TRACE_LOG_FILE: str = "agent_trace.jsonl"
    INTENT_IGNORE_FILE: str = ".intentignore"

    # ========================================================================
    # Policy Configuration
    # ========================================================================
    SELECT_INTENT_TOOL: str = "select_active_intent"
    MODEL_IDENTIFIER: str = os.getenv("MODEL_IDENTIFIER", "unknown-model")
    COMMAND_SUMMARY_MAX: int = 120
    APPROVAL_PROVIDER: str = os.getenv("APPROVAL_PROVIDER", "auto")
    CAPABILITIES_YAML_PATH: Optional[str] = os.getenv("CAPABILITIES_YAML_PATH") or None

    # ========================================================================
    # Path helpers
    # ========================================================================
    @classmethod
    def orchestration_dir(cls, root: Path) -> Path:
        return Path(root) / cls.ORCHESTRATION_DIR

    @classmethod
    def manifest_path(cls, root: Path) -> Path:
        """Location of the intent manifest inside a workspace."""
        return cls.orchestration_dir(root) / cls.ACTIVE_INTENTS_FILE

    @classmethod
    def context_path(cls, root: Path, intent_id: str) -> Path:
        """Location of the rendered context document for one intent."""
        safe_name = intent_id.replace("/", "_").replace("\\", "_")
        return cls.orchestration_dir(root) / cls.INTENT_CONTEXTS_DIR / f"{safe_name}.xml"

    @classmethod
    def trace_path(cls, root: Path) -> Path:
        return cls.orchestration_dir(root) / cls.TRACE_LOG_FILE

    @classmethod
    def ignore_path(cls, root: Path) -> Path:
        return Path(root) / cls.INTENT_IGNORE_FILE

    @classmethod
    def validate(cls) -> bool:
        """
        Validate configuration consistency.

        Checks:
        - COMMAND_SUMMARY_MAX is > 0
        - APPROVAL_PROVIDER names a known provider
        - WORKSPACE_ROOT exists (warning if not)
        - CAPABILITIES_YAML_PATH exists when set (warning if not)

        Returns:
            True if validation passes

        Raises:
            ValueError: If validation fails
        """
        errors = []

        if cls.COMMAND_SUMMARY_MAX <= 0:
            errors.append(
                f"COMMAND_SUMMARY_MAX must be > 0, got {cls.COMMAND_SUMMARY_MAX}"
            )

        known_providers = {"auto", "fastmcp_elicit", "terminal", "systemd_fallback"}
        if cls.APPROVAL_PROVIDER not in known_providers:
            errors.append(
                f"APPROVAL_PROVIDER must be one of {sorted(known_providers)}, "
                f"got {cls.APPROVAL_PROVIDER!r}"
            )

        if cls.TRANSPORT not in {"stdio", "sse", "http"}:
            errors.append(f"TRANSPORT must be stdio, sse or http, got {cls.TRANSPORT!r}")

        if cls.WORKSPACE_ROOT and not Path(cls.WORKSPACE_ROOT).is_dir():
            import warnings

            warnings.warn(
                f"WORKSPACE_ROOT {cls.WORKSPACE_ROOT!r} is not a directory - "
                "hooks that need a workspace will block with NO_WORKSPACE."
            )

        if cls.CAPABILITIES_YAML_PATH and not Path(cls.CAPABILITIES_YAML_PATH).exists():
            import warnings

            warnings.warn(
                f"CAPABILITIES_YAML_PATH {cls.CAPABILITIES_YAML_PATH!r} does not exist - "
                "built-in tool capabilities will be used."
            )

        if errors:
            raise ValueError(f"Config validation failed: {'; '.join(errors)}")

        return True

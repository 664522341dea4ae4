"""Workspace root and version-control revision lookup."""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, Union

from loguru import logger

from .config import Config

UNKNOWN_REVISION = "unknown"


class WorkspaceResolver(Protocol):
    """Supplies the workspace root, or None when no workspace is open."""

    def resolve(self) -> Optional[Path]:
        """Return the workspace root path, if any."""


class StaticWorkspaceResolver:
    """Resolver pinned to one root (or to no workspace at all)."""

    def __init__(self, root: Optional[Union[str, Path]]):
        self._root = Path(root) if root else None

    def resolve(self) -> Optional[Path]:
        return self._root


class ConfigWorkspaceResolver:
    """Resolver reading Config.WORKSPACE_ROOT; a missing directory means no workspace."""

    def resolve(self) -> Optional[Path]:
        if not Config.WORKSPACE_ROOT:
            return None
        root = Path(Config.WORKSPACE_ROOT).expanduser()
        if not root.is_dir():
            logger.warning(f"WORKSPACE_ROOT {root} is not a directory")
            return None
        return root.resolve()


async def resolve_git_revision(root: Path) -> str:
    """
    Best-effort ``git rev-parse HEAD`` for the workspace.

    Never raises; any failure yields ``"unknown"``.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "rev-parse",
            "HEAD",
            cwd=str(root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
        if proc.returncode != 0:
            return UNKNOWN_REVISION
        return stdout.decode("utf-8", errors="replace").strip() or UNKNOWN_REVISION
    except Exception as e:
        logger.debug(f"Revision lookup failed in {root}: {e}")
        return UNKNOWN_REVISION

"""Glob scope matching for owned-scope and ignore patterns.

Supported syntax is deliberately small:

- ``**`` matches any sequence of characters, including ``/``
- ``*`` matches any sequence of characters except ``/``
- every other character is literal (``?``, ``[``, ``{`` included)

A pattern must match the whole normalized path.
"""

import re
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from loguru import logger

from .config import Config


def to_posix(path: str) -> str:
    return path.replace("\\", "/")


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern:
    """Compile a scope glob into an anchored regular expression."""
    pieces = []
    for deep_part in to_posix(pattern).split("**"):
        pieces.append("[^/]*".join(re.escape(part) for part in deep_part.split("*")))
    return re.compile(".*".join(pieces))


def matches(path: str, pattern: str) -> bool:
    """Return True if the whole of ``path`` matches ``pattern``."""
    return compile_glob(pattern).fullmatch(to_posix(path)) is not None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches(path, pattern) for pattern in patterns)


def normalize_target(path: str, root: Optional[Path] = None) -> str:
    """
    Normalize a tool target path for scope comparison.

    Converts separators to ``/``, strips unified-diff ``a/`` and ``b/``
    prefixes and a leading ``./``, and makes absolute paths under ``root``
    workspace-relative.

    ``..`` segments are kept as given, so scope checks trust the caller
    not to climb out of an owned directory.
    """
    normalized = to_posix(path.strip())
    if root is not None and PurePosixPath(normalized).is_absolute():
        root_posix = to_posix(str(root)).rstrip("/")
        if normalized.startswith(root_posix + "/"):
            normalized = normalized[len(root_posix) + 1:]
    if normalized.startswith("a/"):
        normalized = normalized[2:]
    if normalized.startswith("b/"):
        normalized = normalized[2:]
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def parse_ignore_patterns(text: str) -> list[str]:
    """Parse newline-delimited ignore patterns, skipping blanks and ``#`` lines."""
    patterns = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            patterns.append(stripped)
    return patterns


def load_ignore_patterns(root: Path) -> list[str]:
    """Read the workspace ignore file; a missing or unreadable file means no exemptions."""
    ignore_path = Config.ignore_path(root)
    try:
        text = ignore_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {ignore_path}: {e}")
        return []
    return parse_ignore_patterns(text)

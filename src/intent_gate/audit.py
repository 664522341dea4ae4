"""Append-only JSON Lines trace of accepted file mutations."""

import hashlib
import json
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from .config import Config

UNKNOWN_INTENT = "UNKNOWN"

_path_locks: dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


def content_hash(content: str) -> str:
    """Content-addressed hash of the exact UTF-8 bytes, ``sha256:<hex>``."""
    return f"sha256:{hashlib.sha256(content.encode('utf-8')).hexdigest()}"


def count_lines(content: str) -> int:
    """Number of lines in ``content``; empty content counts as one line."""
    if not content:
        return 1
    return len(re.split(r"\r?\n", content))


def build_trace_record(
    *,
    relative_path: str,
    content: str,
    mutation_class: str,
    intent_id: str,
    revision: str,
    session_id: Optional[str] = None,
    model_identifier: Optional[str] = None,
) -> dict[str, Any]:
    """
    Build one self-contained trace record.

    The record links the written file's full line range and content hash
    to the owning intent, the workspace revision and the contributing model.
    """
    return {
        "id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "vcs": {"revision_id": revision},
        "mutation_class": mutation_class,
        "files": [
            {
                "relative_path": relative_path.replace("\\", "/"),
                "conversations": [
                    {
                        "url": session_id or "session",
                        "contributor": {
                            "entity_type": "AI",
                            "model_identifier": model_identifier or Config.MODEL_IDENTIFIER,
                        },
                        "ranges": [
                            {
                                "start_line": 1,
                                "end_line": count_lines(content),
                                "content_hash": content_hash(content),
                            }
                        ],
                        "related": [{"type": "specification", "value": intent_id}],
                    }
                ],
            }
        ],
    }


class TraceLogger:
    """
    JSON Lines writer for trace records.

    Features:
    - One JSON object per line, appended, never rewritten
    - Each line is written by a single call under a per-path lock, so
      concurrent writers in one process never interleave partial lines
    - Parent directory created on first append
    """

    def __init__(self, log_path: Union[str, Path]):
        self.log_path = Path(log_path)

    @classmethod
    def for_workspace(cls, root: Path) -> "TraceLogger":
        return cls(Config.trace_path(root))

    def append(self, record: dict[str, Any]) -> None:
        """
        Append one record as a single line.

        Raises:
            OSError: If the log cannot be written
        """
        json_line = json.dumps(record, ensure_ascii=False) + "\n"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with _lock_for(self.log_path):
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json_line)

    def read_records(self) -> Iterator[dict[str, Any]]:
        """Yield every record in file order; a missing log yields nothing."""
        if not self.log_path.exists():
            return
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)

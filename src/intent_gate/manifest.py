"""Parser for the restricted intent manifest and intent context rendering.

This is not a YAML parser. It reads exactly this shape::

    active_intents:
      - id: "INT-001"
        name: Build the feature
        status: IN_PROGRESS
        owned_scope:
          - "src/feature/**"
        constraints:
          - Keep the public API stable
        acceptance_criteria:
          - Tests pass
        notes: |
          Free text that
          spans several lines.

Rules:

- Parsing starts after the first line whose content begins with
  ``active_intents:``. Without it the manifest holds no intents.
- Each ``- `` line at the indentation of the first entry starts a new
  entry. A non-dash line at or left of that indentation ends the list.
- Inside an entry, ``key: value`` sets a scalar (surrounding quotes are
  removed), ``key:`` starts a list filled by following ``- value`` lines
  (at the key's indentation or deeper), and ``key: |`` starts a block scalar whose more-indented lines are
  joined with newlines.
- Lines nested deeper under a key that is not a list or block scalar
  are skipped. ``#`` comment lines and blank lines are ignored outside
  block scalars.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from xml.sax.saxutils import escape, unescape

from .config import Config

MANIFEST_ROOT_KEY = "active_intents:"
_KEY_LINE = re.compile(r"^([A-Za-z0-9_]+):\s*(.*)$")
_MARKUP_ENTITIES = {'"': "&quot;"}
_MARKUP_UNENTITIES = {"&quot;": '"'}
_MODELED_KEYS = {
    "id",
    "name",
    "status",
    "owned_scope",
    "constraints",
    "acceptance_criteria",
}


@dataclass
class IntentRecord:
    """One declared unit of authorized work."""

    id: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    owned_scope: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> "IntentRecord":
        def scalar(key: str) -> Optional[str]:
            value = fields.get(key)
            return value if isinstance(value, str) and value else None

        def items(key: str) -> list[str]:
            value = fields.get(key)
            return list(value) if isinstance(value, list) else []

        return cls(
            id=scalar("id"),
            name=scalar("name"),
            status=scalar("status"),
            owned_scope=items("owned_scope"),
            constraints=items("constraints"),
            acceptance_criteria=items("acceptance_criteria"),
            extra={k: v for k, v in fields.items() if k not in _MODELED_KEYS},
        )


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_dash(content: str) -> bool:
    return content == "-" or content.startswith("- ")


def _split_entries(lines: list[str]) -> list[list[str]]:
    """Group the lines after the root key into one list of lines per entry."""
    entries: list[list[str]] = []
    entry_indent: Optional[int] = None
    current: Optional[list[str]] = None

    for line in lines:
        content = line.strip()
        if not content:
            if current is not None:
                current.append("")
            continue
        indent = _indent_of(line)

        if entry_indent is None:
            if content.startswith("#"):
                continue
            if not _is_dash(content):
                break
            entry_indent = indent

        if indent == entry_indent and _is_dash(content):
            current = [line]
            entries.append(current)
        elif indent <= entry_indent and not content.startswith("#"):
            break
        elif current is not None:
            current.append(line)

    return entries


def _parse_entry(lines: list[str]) -> dict[str, Any]:
    """Parse one entry's lines into a field mapping."""
    first = lines[0]
    dash_at = first.index("-")
    # "- id: x" -> "  id: x": the entry's keys sit where the first key starts
    head = first[:dash_at] + " " + first[dash_at + 1:]
    key_indent = _indent_of(head) if head.strip() else dash_at + 2
    body = [head] + lines[1:]

    fields: dict[str, Any] = {}
    current_key: Optional[str] = None
    block_lines: Optional[list[str]] = None

    def close_block() -> None:
        nonlocal block_lines
        if current_key is not None and block_lines is not None:
            fields[current_key] = "\n".join(block_lines).strip("\n")
        block_lines = None

    for line in body:
        content = line.strip()
        indent = _indent_of(line)

        if block_lines is not None:
            if not content or indent > key_indent:
                block_lines.append(content)
                continue
            close_block()

        if not content or content.startswith("#"):
            continue

        if indent == key_indent and _is_dash(content):
            # "key:\n- item" with the dash flush against the key
            target = fields.get(current_key) if current_key else None
            if isinstance(target, list):
                target.append(_strip_quotes(content[1:].strip()))
        elif indent == key_indent:
            match = _KEY_LINE.match(content)
            if not match:
                continue
            current_key, value = match.group(1), match.group(2).strip()
            if value == "|":
                fields[current_key] = ""
                block_lines = []
            elif value == "":
                fields[current_key] = []
            else:
                fields[current_key] = _strip_quotes(value)
        elif indent > key_indent and current_key is not None and _is_dash(content):
            target = fields.get(current_key)
            if isinstance(target, list):
                target.append(_strip_quotes(content[1:].strip()))

    close_block()
    return fields


def parse_active_intents(text: str, *, drop_missing_id: bool = True) -> list[IntentRecord]:
    """
    Parse manifest text into intent records, in file order.

    Args:
        text: Manifest contents
        drop_missing_id: Skip entries without an ``id``. Intent selection
            drops them; scope enforcement keeps them (they can never match
            a bound intent id, but they still count as parsed entries).

    Returns:
        Parsed records; empty when the root key is missing
    """
    lines = text.splitlines()
    start = next(
        (i for i, line in enumerate(lines) if line.strip().startswith(MANIFEST_ROOT_KEY)),
        None,
    )
    if start is None:
        return []

    records = []
    for entry_lines in _split_entries(lines[start + 1:]):
        record = IntentRecord.from_fields(_parse_entry(entry_lines))
        if drop_missing_id and not record.id:
            continue
        records.append(record)
    return records


def find_intent(records: list[IntentRecord], intent_id: str) -> Optional[IntentRecord]:
    """First record whose id equals ``intent_id`` exactly."""
    return next((r for r in records if (r.id or "") == intent_id), None)


def load_manifest(root: Path, *, drop_missing_id: bool = True) -> list[IntentRecord]:
    """
    Read and parse the workspace manifest.

    Raises:
        OSError: If the manifest cannot be read
    """
    text = Config.manifest_path(root).read_text(encoding="utf-8")
    return parse_active_intents(text, drop_missing_id=drop_missing_id)


def escape_markup(value: str) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` for embedding in the context document."""
    return escape(value, _MARKUP_ENTITIES)


def unescape_markup(value: str) -> str:
    return unescape(value, _MARKUP_UNENTITIES)


def render_intent_context(record: IntentRecord) -> str:
    """Render the ``<intent_context>`` document for a selected intent."""
    lines = [f'<intent_context id="{escape_markup(record.id or "")}">']
    if record.name:
        lines.append(f"  <name>{escape_markup(record.name)}</name>")
    if record.status:
        lines.append(f"  <status>{escape_markup(record.status)}</status>")

    sections = (
        ("owned_scope", "scope", record.owned_scope),
        ("constraints", "constraint", record.constraints),
        ("acceptance_criteria", "criterion", record.acceptance_criteria),
    )
    for section, item_tag, values in sections:
        if not values:
            continue
        lines.append(f"  <{section}>")
        for value in values:
            lines.append(f"    <{item_tag}>{escape_markup(value)}</{item_tag}>")
        lines.append(f"  </{section}>")

    lines.append("</intent_context>")
    return "\n".join(lines)


def write_intent_context(root: Path, record: IntentRecord) -> tuple[Path, str]:
    """
    Render and persist the context document for ``record``.

    Returns:
        Tuple of (written path, rendered document)

    Raises:
        OSError: If the document cannot be written
    """
    document = render_intent_context(record)
    out_path = Config.context_path(root, record.id or "")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(document, encoding="utf-8")
    return out_path, document

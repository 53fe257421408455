"""Immutable Folder, Document and Block records built from a Craft export."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from craft_export.exceptions import SchemaViolation
from craft_export.schema import (
    BlockProperties,
    SemanticType,
    classify,
    decode_json_field,
    parse_properties,
)

LINK = "link"
CODE = "code"
BOLD = "bold"
ITALIC = "italic"
STRIKETHROUGH = "strikethrough"
HIGHLIGHT = "highlight"

# Run attribute flag -> span style, links first since they rewrite content
RUN_FLAGS = (
    ("linkURL", LINK),
    ("isCode", CODE),
    ("isBold", BOLD),
    ("isItalic", ITALIC),
    ("isStrikethrough", STRIKETHROUGH),
    ("highlightColor", HIGHLIGHT),
)


def sanitized_path(name: str) -> str:
    """Make a name safe to use as a single path component."""
    name = name.replace(":", " - ").replace("/", "-")
    return re.sub(r"\s+", " ", name).strip()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an export timestamp (ISO-8601, optionally Z-suffixed)."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Span:
    """Inline styles applied to the inclusive character range [start, end]."""
    start: int
    end: int
    styles: FrozenSet[str]
    url: Optional[str] = None

    @classmethod
    def from_run(cls, run: Dict[str, Any]) -> "Span":
        start, length = run["range"]
        styles = frozenset(style for flag, style in RUN_FLAGS if run.get(flag))
        return cls(start, start + length - 1, styles, run.get("linkURL"))

    @property
    def length(self) -> int:
        return max(self.end - self.start + 1, 0)

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end


@dataclass(frozen=True)
class Folder:
    id: str
    name: str
    parent_id: Optional[str] = None
    document_ids: Tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Folder":
        return cls(
            id=record["id"],
            name=record["name"],
            parent_id=record.get("parentFolderId") or None,
            document_ids=tuple(record.get("documents") or ()),
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class Document:
    id: str
    root_block_id: str
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Document":
        return cls(
            id=record["id"],
            root_block_id=record["rootBlockId"],
            created=parse_timestamp(record.get("created")),
            modified=parse_timestamp(record.get("modified")),
        )


@dataclass(frozen=True)
class Block:
    """A node in a document's content tree.

    The semantic type is computed once, when the record is read, and is the
    only thing the converter dispatches on.
    """
    id: str
    document_id: str
    type: str
    content: str
    semantic_type: SemanticType
    child_ids: Tuple[str, ...] = ()
    style: Dict[str, Any] = field(default_factory=dict, compare=False)
    properties: Optional[BlockProperties] = field(default=None, compare=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Block":
        style = decode_json_field(record.get("style"))
        raw = decode_json_field(record.get("rawProperties"))

        text_style = style.get("textStyle")
        if text_style == "":
            raise SchemaViolation(f"Block {record.get('id')} has an empty textStyle")
        semantic_type = classify(record["type"], text_style or "body", style.get("listStyle") or "none")

        return cls(
            id=record["id"],
            document_id=record["documentId"],
            type=record["type"],
            content=record.get("content") or "",
            semantic_type=semantic_type,
            child_ids=tuple(record.get("blocks") or ()),
            style=style,
            properties=parse_properties(semantic_type, raw),
        )

    @property
    def text_style(self) -> str:
        return self.style.get("textStyle") or "body"

    @property
    def list_style(self) -> str:
        return self.style.get("listStyle") or "none"

    @property
    def indentation(self) -> int:
        return int(self.style.get("indentationLevel") or 0)

    @property
    def focused(self) -> bool:
        """Whether the block is decorated as a focus/quote block."""
        decorations = self.style.get("decorations") or {}
        return bool(decorations.get("focus") or decorations.get("block"))

    @property
    def todo_checked(self) -> bool:
        raw = self.properties.get("isTodoChecked") or 0
        try:
            return int(raw) > 0
        except (TypeError, ValueError):
            return bool(raw)

    @property
    def has_children(self) -> bool:
        return bool(self.child_ids)

    @property
    def spans(self) -> Tuple[Span, ...]:
        return tuple(Span.from_run(run) for run in self.style.get("_runAttributes") or ())

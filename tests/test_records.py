"""Tests for record construction from raw export data."""

import json
from datetime import datetime, timezone

import pytest

from craft_export.exceptions import SchemaViolation
from craft_export.records import Block, Document, Folder, Span, parse_timestamp, sanitized_path
from craft_export.schema import SemanticType


def block(style=None, raw=None, type="text", **extra):
    record = {
        "id": "b1",
        "documentId": "d1",
        "content": "hello",
        "type": type,
        "style": json.dumps(style or {}),
        "blocks": ["b2", "b3"],
        "rawProperties": json.dumps(raw or {}),
    }
    record.update(extra)
    return Block.from_record(record)


class TestSpan:
    """Tests for converting run attributes into spans."""

    def test_from_run(self):
        span = Span.from_run({"range": [2, 4], "isBold": True, "isItalic": True})
        assert (span.start, span.end) == (2, 5)
        assert span.styles == {"bold", "italic"}
        assert span.url is None
        assert span.length == 4

    def test_link_run(self):
        span = Span.from_run({"range": [0, 3], "linkURL": "https://a.b"})
        assert span.styles == {"link"}
        assert span.url == "https://a.b"

    def test_highlight_color_counts_as_highlight(self):
        assert Span.from_run({"range": [0, 1], "highlightColor": "yellow"}).styles == {"highlight"}

    def test_false_flags_are_ignored(self):
        assert Span.from_run({"range": [0, 1], "isBold": False}).styles == frozenset()

    def test_empty_range(self):
        span = Span.from_run({"range": [3, 0], "isBold": True})
        assert span.length == 0

    def test_contains(self):
        span = Span(2, 4, frozenset())
        assert span.contains(2) and span.contains(4)
        assert not span.contains(5)


class TestBlock:
    """Tests for Block.from_record and its derived properties."""

    def test_basic_fields(self):
        b = block(style={"textStyle": "subtitle"})
        assert b.semantic_type == SemanticType.HEADING
        assert b.text_style == "subtitle"
        assert b.child_ids == ("b2", "b3")
        assert b.has_children

    def test_defaults(self):
        b = block()
        assert b.semantic_type == SemanticType.TEXT
        assert b.list_style == "none"
        assert b.indentation == 0
        assert not b.focused
        assert not b.todo_checked
        assert b.spans == ()

    def test_list_item(self):
        b = block(style={"listStyle": "todo", "indentationLevel": 2}, raw={"isTodoChecked": 1})
        assert b.semantic_type == SemanticType.LIST
        assert b.indentation == 2
        assert b.todo_checked

    def test_focus_decorations(self):
        assert block(style={"decorations": {"focus": True}}).focused
        assert block(style={"decorations": {"block": True}}).focused

    def test_spans(self):
        b = block(style={"_runAttributes": [{"range": [0, 5], "isCode": True}]})
        assert b.spans == (Span(0, 4, frozenset({"code"})),)

    def test_dict_fields_are_accepted(self):
        b = block(style={}, rawProperties={"language": "go"}, type="code")
        assert b.properties.get("language") == "go"

    def test_empty_text_style(self):
        with pytest.raises(SchemaViolation):
            block(style={"textStyle": ""})

    def test_missing_content(self):
        assert block(content=None).content == ""


class TestFolderAndDocument:
    """Tests for folder and document records."""

    def test_folder(self):
        folder = Folder.from_record({"id": "f", "name": "Work", "parentFolderId": "", "documents": ["d1"]})
        assert folder.is_root
        assert folder.document_ids == ("d1",)

    def test_document_timestamps(self):
        document = Document.from_record({"id": "d", "rootBlockId": "b", "created": "2022-03-01T09:30:00.000Z"})
        assert document.created == datetime(2022, 3, 1, 9, 30, tzinfo=timezone.utc)
        assert document.modified is None


@pytest.mark.parametrize("name,expected", [
    ("Plain", "Plain"),
    ("Meeting: notes", "Meeting - notes"),
    ("a/b/c", "a-b-c"),
    ("  spaced   out  ", "spaced out"),
])
def test_sanitized_path(name, expected):
    assert sanitized_path(name) == expected


def test_parse_timestamp():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("2022-03-01T09:30:00+00:00").hour == 9

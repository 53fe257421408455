"""Shared fixtures: build small Craft spaces from in-memory records."""

import json
import pytest

from craft_export.converter import MarkdownConverter
from craft_export.diagnostics import Diagnostics
from craft_export.importer import build_repository


class SpaceBuilder:
    """Collects folder, document and block records for one test export."""

    def __init__(self):
        self.folders = []
        self.documents = []
        self.blocks = {}
        self._counter = 0

    @staticmethod
    def run(start, length, **flags):
        """A style run attribute, e.g. run(0, 4, isBold=True)."""
        return {"range": [start, length], **flags}

    def _id(self, prefix):
        self._counter += 1
        return f"{prefix}{self._counter:03d}"

    def block(self, content="", type="text", children=(), style=None, raw=None, id=None):
        record = {
            "id": id or self._id("block"),
            "documentId": None,
            "content": content,
            "type": type,
            "style": json.dumps(style or {}),
            "blocks": [child["id"] for child in children],
            "rawProperties": json.dumps(raw or {}),
            "offSchemaProperties": "{}",
        }
        self.blocks[record["id"]] = record
        return record

    # Shorthands for the common block kinds

    def text(self, content, children=(), runs=(), focus=False, text_style="body", id=None):
        style = {"textStyle": text_style}
        if runs:
            style["_runAttributes"] = list(runs)
        if focus:
            style["decorations"] = {"focus": True}
        return self.block(content, children=children, style=style, id=id)

    def heading(self, content, text_style="title", children=()):
        return self.block(content, children=children, style={"textStyle": text_style})

    def item(self, content, list_style="bullet", indent=0, checked=False, children=(), focus=False, runs=()):
        style = {"listStyle": list_style, "indentationLevel": indent}
        if focus:
            style["decorations"] = {"focus": True}
        if runs:
            style["_runAttributes"] = list(runs)
        raw = {"isTodoChecked": 1} if checked else None
        return self.block(content, children=children, style=style, raw=raw)

    def page(self, content, children=()):
        return self.block(content, children=children, style={"textStyle": "pageRegular"})

    def line(self):
        return self.block("", type="line", style={"lineStyle": "regular"})

    def attachment(self, filename, type="image", url="https://res.craft.do/file", size=3, id=None):
        raw = {"fileName": filename, "rawUrl": url, "rawDataSize": size}
        return self.block("", type=type, raw=raw, id=id)

    def document(self, title, children=(), folder=None, id=None, created="2022-03-01T09:30:00.000Z"):
        document_id = id or self._id("doc")
        root = self.block(title, children=children, style={"textStyle": "title"})
        self._assign(root, document_id)
        record = {
            "id": document_id,
            "rootBlockId": root["id"],
            "created": created,
            "modified": created,
        }
        self.documents.append(record)
        if folder is not None:
            folder["documents"].append(document_id)
        return record

    def folder(self, name, parent=None, id=None):
        record = {
            "id": id or self._id("folder"),
            "name": name,
            "documents": [],
        }
        if parent is not None:
            record["parentFolderId"] = parent["id"]
        self.folders.append(record)
        return record

    def _assign(self, record, document_id):
        record["documentId"] = document_id
        for child_id in record["blocks"]:
            self._assign(self.blocks[child_id], document_id)

    def export(self):
        return {
            "FolderDataModel": self.folders,
            "DocumentDataModel": self.documents,
            "BlockDataModel": list(self.blocks.values()),
        }

    def build(self, strict=True):
        return build_repository(self.export(), strict=strict)


@pytest.fixture
def space():
    """An empty space builder."""
    return SpaceBuilder()


@pytest.fixture
def render():
    """Convert one document of a builder; returns (markdown, diagnostics)."""
    def _render(builder, document, **kwargs):
        repository = builder.build()
        converter = MarkdownConverter(repository, **kwargs)
        diagnostics = Diagnostics()
        converted = converter.convert_document(repository.document(document["id"]), diagnostics)
        return converted.markdown, diagnostics.for_document(converted.path)
    return _render

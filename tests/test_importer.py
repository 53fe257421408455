"""Tests for loading export files."""

import json

import pytest

from craft_export.exceptions import SchemaViolation, UnknownBlockType
from craft_export.importer import BLOCKS_KEY, build_repository, load_export


class TestBuildRepository:
    """Tests for validating and indexing records."""

    def test_builds_all_tables(self, space):
        folder = space.folder("Notes")
        space.document("Doc", children=[space.text("x")], folder=folder)
        repository = build_repository(space.export())

        assert len(repository.folders) == 1
        assert len(repository.documents) == 1
        assert len(repository.blocks) == 2

    def test_missing_collection(self, space):
        data = space.export()
        del data[BLOCKS_KEY]
        with pytest.raises(SchemaViolation, match="BlockDataModel"):
            build_repository(data)

    def test_strict_rejects_unknown_keys(self, space):
        block = space.text("x")
        block["mood"] = "happy"
        space.document("Doc", children=[block])

        with pytest.raises(SchemaViolation) as exc_info:
            build_repository(space.export())
        assert "mood" in str(exc_info.value)

    def test_lenient_keeps_the_record(self, space):
        block = space.text("x")
        block["mood"] = "happy"
        space.document("Doc", children=[block])

        repository = build_repository(space.export(), strict=False)
        assert repository.block(block["id"]).content == "x"

    def test_unknown_type_is_fatal_even_when_lenient(self, space):
        space.document("Doc", children=[space.block("", type="whiteboard")])
        with pytest.raises(UnknownBlockType):
            build_repository(space.export(), strict=False)

    def test_missing_required_key(self, space):
        doc = space.document("Doc")
        del doc["rootBlockId"]
        with pytest.raises(SchemaViolation, match="rootBlockId"):
            build_repository(space.export(), strict=False)


class TestLoadExport:
    """Tests for reading an export from disk."""

    def test_load(self, space, tmp_path):
        space.document("Doc", children=[space.text("x")])
        json_path = tmp_path / "craft.json"
        json_path.write_text(json.dumps(space.export()), encoding="utf-8")

        repository = load_export(json_path)
        assert len(repository.documents) == 1

    def test_invalid_json(self, tmp_path):
        json_path = tmp_path / "craft.json"
        json_path.write_text("{oops", encoding="utf-8")
        with pytest.raises(SchemaViolation):
            load_export(json_path)

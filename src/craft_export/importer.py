"""Load a `craft.json` export into a Repository."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

from loguru import logger

from craft_export.exceptions import SchemaViolation
from craft_export.records import Block, Document, Folder
from craft_export.repository import Repository
from craft_export.schema import Validation, validate_block, validate_document, validate_folder

FOLDERS_KEY = "FolderDataModel"
DOCUMENTS_KEY = "DocumentDataModel"
BLOCKS_KEY = "BlockDataModel"


def load_export(json_path: Path, strict: bool = True) -> Repository:
    """Read a Realm-to-JSON export from disk."""
    logger.info("Loading Craft export from {}", json_path)
    try:
        data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SchemaViolation(f"{json_path} is not valid JSON: {e}") from e
    return build_repository(data, strict=strict)


def build_repository(data: Dict[str, Any], strict: bool = True) -> Repository:
    """Validate every record and build the lookup tables.

    With `strict` (the default) the first record that doesn't match the known
    schema aborts the load. Otherwise the problems are logged and the record
    is kept.
    """
    for key in (FOLDERS_KEY, DOCUMENTS_KEY, BLOCKS_KEY):
        if key not in data:
            raise SchemaViolation(f"export has no {key} collection")

    folders = _load(data[FOLDERS_KEY], validate_folder, Folder.from_record, strict)
    documents = _load(data[DOCUMENTS_KEY], validate_document, Document.from_record, strict)
    blocks = _load(data[BLOCKS_KEY], validate_block, Block.from_record, strict)

    return Repository(folders, documents, blocks)


def _load(records: List[Dict[str, Any]], validate: Callable[[Dict[str, Any]], Validation],
          build: Callable[[Dict[str, Any]], Any], strict: bool) -> List[Any]:
    items = []
    for record in records:
        validation = validate(record)
        if strict:
            validation.raise_for_problems()
        elif not validation.ok:
            logger.warning("{} {} does not match the known schema: {}",
                           validation.kind, validation.record_id, "; ".join(validation.problems))
        try:
            items.append(build(record))
        except KeyError as e:
            raise SchemaViolation(f"{validation.kind} {validation.record_id} is missing key {e}") from e
    logger.debug("Loaded {} records", len(items))
    return items

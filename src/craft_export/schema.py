"""Block classification and record validation for Craft exports.

Every block record is mapped onto a small closed set of semantic types, and
every key it carries is checked against an allow-list for that type. When
Craft starts exporting a new property the run stops until the key is added
here.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from craft_export.exceptions import SchemaViolation, UnknownBlockType


class SemanticType(str, Enum):
    """How a block gets rendered."""
    TEXT = "text"
    HEADING = "heading"
    PAGE = "page"
    LIST = "list"
    URL = "url"
    CODE = "code"
    FILE = "file"
    IMAGE = "image"
    SEPARATOR = "separator"
    TABLE = "table"


TEXT_STYLES = {
    "body": SemanticType.TEXT,
    "caption": SemanticType.TEXT,
    "pageRegular": SemanticType.PAGE,
    "pageCard": SemanticType.PAGE,
    "strong": SemanticType.HEADING,
    "heading": SemanticType.HEADING,
    "subtitle": SemanticType.HEADING,
    "title": SemanticType.HEADING,
}

# Raw types that render the same way regardless of text or list style
DIRECT_TYPES = {
    "url": SemanticType.URL,
    "code": SemanticType.CODE,
    "file": SemanticType.FILE,
    "image": SemanticType.IMAGE,
    "line": SemanticType.SEPARATOR,
    "table": SemanticType.TABLE,
}

LIST_STYLES = ("bullet", "numbered", "toggle", "todo", "none")


def classify(raw_type: str, text_style: str = "body", list_style: str = "none") -> SemanticType:
    """Map a raw block type plus its styles onto a semantic type."""
    if raw_type == "text":
        if list_style != "none":
            return SemanticType.LIST
        semantic = TEXT_STYLES.get(text_style)
        if semantic is None:
            raise UnknownBlockType(f"unknown text style {text_style!r}")
        return semantic

    semantic = DIRECT_TYPES.get(raw_type)
    if semantic is None:
        raise UnknownBlockType(f"unknown block type {raw_type!r}")
    return semantic


# Top-level keys of the three record collections
FOLDER_KEYS = {
    "known": ["id", "name", "parentFolderId", "properties", "documents"],
    "ignored": ["created", "updated"],
    "empty": ["offSchemaProperties"],
}

DOCUMENT_KEYS = {
    "known": ["id", "rootBlockId", "created", "modified"],
    "ignored": ["stamp", "syncEnabled", "isFetched"],
    "empty": ["offSchemaProperties"],
}

BLOCK_KEYS = {
    "known": [
        "id", "documentId", "content", "type", "style", "blocks",
        "decorations", "offSchemaProperties", "rawProperties",
    ],
    # pageStyleData holds spacing and page width, pluginStyle isn't rendered
    "ignored": [
        "lastSyncedBlockIds", "createdByUserId", "modifiedByUserId",
        "created", "updated", "stamp", "pluginData", "pageStyleData",
        "isFetched", "lastSyncedProperties",
    ],
    "empty": [],
}

# Cover images and pagification history carry nothing worth converting
IGNORED_RAW_PROPERTIES = [
    "coverAspectRatio",
    "coverImageBackgroundColor",
    "coverImageEnabled",
    "coverImageValueKey",
    "coverImageWidth",
    "coverUnsplashAttribution",
    "hasBeenPagifiedBefore",
]

_ATTACHMENT_PROPERTIES = [
    "aspectRatio",
    "altText",
    "fileName",
    "fileExtension",
    "isPreviewImageUploaded",
    "mimeType",
    "previewImageWidth",
    "primaryColor",
    "rawDataSize",
    "rawUrl",  # the attachment itself
    "uploaded",
    "url",  # preview rendering, e.g. first page of a PDF
]

RAW_PROPERTIES: Dict[SemanticType, List[str]] = {
    SemanticType.TEXT: [
        "rawUrl", "dailyNoteDate", "isTodoChecked", "toDoCheckedDate",
        # rich links and former rich links
        "url", "description", "iconUrl", "title",
    ],
    SemanticType.HEADING: ["isTodoChecked", "toDoCheckedDate"],
    SemanticType.PAGE: [
        "coverImageEnabled", "dailyNoteDate",
        "coverAspectRatio", "coverImageBackgroundColor", "coverImageValueKey",
        "coverImageWidth", "coverUnsplashAttribution",
        "isTodoChecked", "toDoCheckedDate",
    ],
    SemanticType.LIST: [
        "dailyNoteDate", "isTodoChecked", "toDoCheckedDate",
        "rawUrl", "url", "description", "iconUrl", "title", "originalUrl",
    ],
    SemanticType.URL: ["description", "title", "url", "iconUrl", "originalUrl"],
    SemanticType.CODE: ["language", "isTodoChecked", "toDoCheckedDate"],
    SemanticType.FILE: list(_ATTACHMENT_PROPERTIES),
    SemanticType.IMAGE: _ATTACHMENT_PROPERTIES + ["previewImageHasTransparency"],
    SemanticType.SEPARATOR: [],
    SemanticType.TABLE: [],
}

STYLE_PROPERTIES: Dict[SemanticType, List[str]] = {
    SemanticType.PAGE: ["decorationStyles"],
    SemanticType.TEXT: [
        "userDefinedListNumber", "decorationStyles", "alignmentStyle",
        "layoutStyle", "fontStyle",
    ],
    SemanticType.HEADING: [],
    SemanticType.CODE: ["layoutStyle", "fontStyle"],
    SemanticType.FILE: ["imageFillStyle", "layoutStyle"],
    SemanticType.IMAGE: ["imageFillStyle", "imageSizeStyle"],
    SemanticType.LIST: [
        "userDefinedListNumber", "layoutStyle", "alignmentStyle", "fontStyle",
    ],
    SemanticType.URL: ["layoutStyle"],
    SemanticType.SEPARATOR: ["lineStyle"],
    SemanticType.TABLE: [],
}

COMMON_STYLE_KEYS = [
    "_runAttributes", "decorations", "decorationStyles", "indentationLevel",
    "listStyle", "textStyle", "color",
]

OFF_SCHEMA_KEYS = ["resourceId", "parentBlock"]
DECORATION_KEYS = ["focus", "block"]
RUN_ATTRIBUTE_KEYS = [
    "isBold", "isCode", "isItalic", "isStrikethrough", "linkURL", "range",
    "highlightColor",
]


def decode_json_field(value: Any) -> Dict[str, Any]:
    """Decode a record field that may hold JSON text or an already-parsed dict.

    The Realm export stores style and property bags as JSON strings, with
    the empty string standing in for an empty object.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            raise SchemaViolation(f"field is not valid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise SchemaViolation(f"expected a JSON object, got {type(decoded).__name__}")
        return decoded
    raise SchemaViolation(f"expected a JSON object or string, got {type(value).__name__}")


@dataclass(frozen=True)
class BlockProperties:
    """Raw properties permitted for one semantic type.

    Keys outside the type's allow-list land in `unrecognized` rather than
    being dropped, so callers can see exactly what the export grew.
    """
    semantic_type: SemanticType
    values: Dict[str, Any] = field(default_factory=dict)
    unrecognized: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.values


def parse_properties(semantic_type: SemanticType, raw: Dict[str, Any]) -> BlockProperties:
    """Split a raw property bag into permitted values and unrecognized extras."""
    permitted = set(RAW_PROPERTIES[semantic_type])
    ignored = set(IGNORED_RAW_PROPERTIES) - permitted
    values = {}
    unrecognized = {}
    for key, value in raw.items():
        if key in permitted:
            values[key] = value
        elif key not in ignored:
            unrecognized[key] = value
    return BlockProperties(semantic_type, values, unrecognized)


@dataclass
class Validation:
    """Outcome of validating one record."""
    record_id: Optional[str]
    kind: str
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def unexpected_keys(self, name: str, data: Dict[str, Any], allowed: List[str]):
        unknown = sorted(set(data) - set(allowed))
        if unknown:
            self.problems.append(f"unexpected keys in {name}: {unknown}")

    def unexpected_value(self, name: str, value: Any, allowed: List[Any]):
        if value not in allowed:
            self.problems.append(f"unexpected value in {name}: {value!r}")

    def raise_for_problems(self):
        """Raise SchemaViolation when the record failed validation."""
        if not self.ok:
            raise SchemaViolation(f"{self.kind} {self.record_id} does not match the known schema",
                                  self.problems)


def _validate_record_keys(kind: str, record: Dict[str, Any], keys: Dict[str, List[str]]) -> Validation:
    validation = Validation(record.get("id"), kind)
    validation.unexpected_keys(kind, record, keys["known"] + keys["ignored"] + keys["empty"])
    for key in keys["empty"]:
        value = record.get(key)
        if value not in (None, "", "{}", {}, []):
            validation.problems.append(f"unexpected value in empty key {key}: {value!r}")
    return validation


def validate_folder(record: Dict[str, Any]) -> Validation:
    return _validate_record_keys("Folder", record, FOLDER_KEYS)


def validate_document(record: Dict[str, Any]) -> Validation:
    return _validate_record_keys("Document", record, DOCUMENT_KEYS)


def validate_block(record: Dict[str, Any]) -> Validation:
    """Check a block record against the allow-lists for its semantic type.

    Classification failures are not collected: an unknown type raises
    UnknownBlockType straight away since no allow-list applies to it.
    """
    validation = _validate_record_keys("Block", record, BLOCK_KEYS)

    style = decode_json_field(record.get("style"))
    raw = decode_json_field(record.get("rawProperties"))
    off_schema = decode_json_field(record.get("offSchemaProperties"))

    text_style = style.get("textStyle") or "body"
    if style.get("textStyle") == "":
        validation.problems.append("empty textStyle")
    list_style = style.get("listStyle") or "none"
    semantic_type = classify(record.get("type"), text_style, list_style)

    properties = parse_properties(semantic_type, raw)
    if properties.unrecognized:
        validation.problems.append(
            f"unexpected keys in {semantic_type.value} rawProperties: {sorted(properties.unrecognized)}"
        )
    validation.unexpected_keys("offSchemaProperties", off_schema, OFF_SCHEMA_KEYS)
    validation.unexpected_keys(f"{semantic_type.value} style", style,
                               STYLE_PROPERTIES[semantic_type] + COMMON_STYLE_KEYS)

    validation.unexpected_value("style.decorationStyles", style.get("decorationStyles"), [None, {}])
    decorations = style.get("decorations") or {}
    if isinstance(decorations, dict):
        validation.unexpected_keys("style.decorations", decorations, DECORATION_KEYS)
    else:
        validation.problems.append(f"unexpected value in style.decorations: {decorations!r}")

    for i, run in enumerate(style.get("_runAttributes") or []):
        validation.unexpected_keys(f"style._runAttributes[{i}]", run, RUN_ATTRIBUTE_KEYS)

    validation.unexpected_value("style.listStyle", style.get("listStyle"), [None, *LIST_STYLES])

    if not validation.ok:
        logger.debug("Block {} failed validation: {}", validation.record_id, validation.problems)
    return validation

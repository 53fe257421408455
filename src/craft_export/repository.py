"""Read-only lookup tables for a loaded Craft space."""

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from loguru import logger

from craft_export.exceptions import DataIntegrityError
from craft_export.records import Block, Document, Folder, sanitized_path
from craft_export.schema import SemanticType

# Top-level folders renamed so they sort in a fixed order
RESERVED_FOLDERS = {
    "Daily": "0 - Daily",
    "Projects": "1 - Projects",
    "Areas": "2 - Areas",
    "Resources": "3 - Resources",
    "Archive": "4 - Archive",
}

DAILY_FOLDER = "0 - Daily"
INBOX_FOLDER = "Inbox"
DAILY_FILENAME = re.compile(r"^(\d{4})\.(\d{2})\.(\d{2})\.md$")

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def format_day(day: date) -> str:
    """Format a date the way daily notes are named, e.g. `2024-03-05 Tue`."""
    return f"{day.isoformat()} {WEEKDAYS[day.weekday()]}"


@dataclass(frozen=True)
class Attachment:
    """Deduplicated output filename for a file or image block."""
    block_id: str
    filename: str


def build_attachment_registry(blocks: Iterable[Block]) -> Dict[str, Attachment]:
    """Assign every file/image block a unique output filename.

    Blocks are visited in id order so the `-1`, `-2` suffixes come out the
    same on every run. This has to see every block before any conversion
    starts.
    """
    taken = set()
    registry = {}
    for block in sorted(blocks, key=lambda b: b.id):
        if block.semantic_type not in (SemanticType.FILE, SemanticType.IMAGE):
            continue

        original = PurePosixPath(block.properties.get("fileName") or block.id)
        basename = original.stem
        # TIFFs come through without an extension
        extension = original.suffix or ".png"

        if basename in taken:
            suffix = 1
            while f"{basename}-{suffix}" in taken:
                suffix += 1
            basename = f"{basename}-{suffix}"
        taken.add(basename)

        registry[block.id] = Attachment(block.id, basename + extension)

    logger.debug("Registered {} attachments", len(registry))
    return registry


class Repository:
    """Folders, documents, blocks and attachments of one export.

    Built once before conversion; every table is exposed read-only so the
    same repository can be shared by any number of conversions.
    """

    def __init__(self, folders: Iterable[Folder], documents: Iterable[Document], blocks: Iterable[Block]):
        self.folders: Mapping[str, Folder] = MappingProxyType({f.id: f for f in folders})
        self.documents: Mapping[str, Document] = MappingProxyType({d.id: d for d in documents})
        self.blocks: Mapping[str, Block] = MappingProxyType({b.id: b for b in blocks})
        self.attachments: Mapping[str, Attachment] = MappingProxyType(
            build_attachment_registry(self.blocks.values())
        )

        containing: Dict[str, List[str]] = {}
        for folder in sorted(self.folders.values(), key=lambda f: f.id):
            for document_id in folder.document_ids:
                containing.setdefault(document_id, []).append(folder.id)
        self._containing = MappingProxyType({k: tuple(v) for k, v in containing.items()})

        logger.info("Repository ready: {} folders, {} documents, {} blocks, {} attachments",
                    len(self.folders), len(self.documents), len(self.blocks), len(self.attachments))

    # Lookups

    def folder(self, folder_id: str) -> Folder:
        return self._fetch(self.folders, "folder", folder_id)

    def document(self, document_id: str) -> Document:
        return self._fetch(self.documents, "document", document_id)

    def block(self, block_id: str) -> Block:
        return self._fetch(self.blocks, "block", block_id)

    def resolve(self, block_id: str) -> Optional[Block]:
        """Look up a link target; None when the block doesn't exist."""
        return self.blocks.get(block_id)

    def attachment(self, block_id: str) -> Attachment:
        return self._fetch(self.attachments, "attachment", block_id)

    @staticmethod
    def _fetch(table: Mapping, kind: str, key: str):
        try:
            return table[key]
        except KeyError:
            raise DataIntegrityError(f"unknown {kind} {key!r}") from None

    # Tree navigation

    def root_block(self, document: Document) -> Block:
        return self.block(document.root_block_id)

    def document_of(self, block: Block) -> Document:
        return self.document(block.document_id)

    def is_root(self, block: Block) -> bool:
        document = self.documents.get(block.document_id)
        return document is not None and document.root_block_id == block.id

    def children(self, block: Block) -> Iterator[Block]:
        for child_id in block.child_ids:
            yield self.block(child_id)

    def first_child(self, block: Block) -> Optional[Block]:
        if not block.child_ids:
            return None
        return self.block(block.child_ids[0])

    def folders_containing(self, document: Document) -> List[Folder]:
        """Every folder listing the document, lowest id first."""
        return [self.folders[fid] for fid in self._containing.get(document.id, ())]

    def folder_of(self, document: Document) -> Optional[Folder]:
        folders = self.folders_containing(document)
        return folders[0] if folders else None

    # Paths

    def folder_path(self, folder: Folder) -> Path:
        components = []
        seen = set()
        current = folder
        while current is not None:
            if current.id in seen:
                raise DataIntegrityError(f"folder {folder.id} has a cyclic parent chain")
            seen.add(current.id)
            components.insert(0, sanitized_path(current.name))
            current = self.folder(current.parent_id) if current.parent_id else None

        components[0] = RESERVED_FOLDERS.get(components[0], components[0])
        return Path(*components)

    def document_path(self, document: Document) -> Path:
        """Relative output path of a document's Markdown file."""
        filename = sanitized_path(self.root_block(document).content) + ".md"
        day = self._daily_date(filename)
        if day:
            return Path(DAILY_FOLDER) / f"{day.year:04d}" / f"{format_day(day)}.md"

        folder = self.folder_of(document)
        return (self.folder_path(folder) if folder else Path(INBOX_FOLDER)) / filename

    @staticmethod
    def _daily_date(filename: str) -> Optional[date]:
        match = DAILY_FILENAME.match(filename)
        if not match:
            return None
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None

    def documents_by_path(self) -> List[Document]:
        """All documents in the stable order they get exported in."""
        return sorted(self.documents.values(), key=lambda d: (str(self.document_path(d)), d.id))

"""Conversion scope and result models for Craft Export."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from craft_export.diagnostics import Diagnostic, Diagnostics
from craft_export.repository import Attachment


@dataclass
class ConversionScope:
    """Per-document state threaded through one conversion."""
    document_path: Path
    diagnostics: Diagnostics
    attachments: List[Attachment] = field(default_factory=list)
    depth: int = 0
    quoted: bool = False

    def warn(self, message: str, detail: Optional[str] = None) -> Diagnostic:
        """Record a diagnostic against the document being converted."""
        return self.diagnostics.record(self.document_path, message, detail)

    def nested(self, quoted: bool = False) -> "ConversionScope":
        """Scope for converting one level further down the tree.

        Once inside a block quote every deeper level stays quoted, so the
        quote is never opened a second time.
        """
        return ConversionScope(self.document_path, self.diagnostics, self.attachments,
                               self.depth + 1, self.quoted or quoted)


@dataclass
class ConvertedDocument:
    """Markdown for one document plus the attachments it references."""
    document_id: str
    path: Path
    markdown: str
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class ExportResult:
    """Result of an export run."""
    success: bool
    output_dir: Path
    documents_written: int = 0
    documents_skipped: int = 0
    documents_changed: int = 0
    documents_unchanged: int = 0
    attachments_referenced: int = 0
    attachments_downloaded: int = 0
    warnings: int = 0
    results_file: Optional[Path] = None
    diagnostics: Optional[Diagnostics] = None
    error: Optional[str] = None

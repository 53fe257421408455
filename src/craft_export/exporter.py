"""Export engine for orchestrating a full Craft to Markdown run."""

import errno
from pathlib import Path
from typing import Optional

import requests
from loguru import logger

from craft_export.config import ExportSettings
from craft_export.converter import MarkdownConverter
from craft_export.diagnostics import Diagnostics
from craft_export.document import ExportResult
from craft_export.exceptions import ExportError
from craft_export.importer import load_export
from craft_export.media import AttachmentDownloader, OfflineStager
from craft_export.platforms.obsidian import ObsidianVault
from craft_export.repository import Repository
from craft_export.state import ExportState


class ExportEngine:
    """Convert every document of an export into an Obsidian vault."""

    def __init__(self, settings: ExportSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session
        logger.debug("ExportEngine initialized: output={}", settings.output_path)

    def export(self, json_path: Path) -> ExportResult:
        """
        Load a craft.json export and convert all of it.

        Fatal schema and classification errors stop the run; the result then
        carries the error instead of partial counts.
        """
        try:
            repository = load_export(json_path, strict=self.settings.strict)
            return self.export_repository(repository)
        except ExportError as e:
            logger.exception("Export failed: {}", e)
            return ExportResult(success=False, output_dir=self.settings.output_path, error=str(e))

    def export_repository(self, repository: Repository) -> ExportResult:
        """Convert and write every document, in path order."""
        settings = self.settings
        output_dir = settings.output_path
        output_dir.mkdir(parents=True, exist_ok=True)

        diagnostics = Diagnostics()
        if settings.download_attachments:
            stager = AttachmentDownloader(output_dir, session=self.session)
        else:
            stager = OfflineStager()
        converter = MarkdownConverter(
            repository,
            stager=stager,
            attachments_folder=settings.attachments_folder,
            max_depth=settings.max_depth,
        )
        vault = ObsidianVault(output_dir)
        state = ExportState(output_dir)
        result = ExportResult(success=True, output_dir=output_dir, diagnostics=diagnostics)

        documents = repository.documents_by_path()
        logger.info("Exporting {} documents to {}", len(documents), output_dir)

        for document in documents:
            path = repository.document_path(document)
            if settings.is_skipped(path):
                logger.debug("Skipping {}", path)
                result.documents_skipped += 1
                continue

            logger.info("Converting {}", path)
            converted = converter.convert_document(document, diagnostics)

            try:
                vault.write_document(converted.path, converted.markdown, created=document.created)
            except OSError as e:
                if e.errno != errno.ENAMETOOLONG:
                    raise
                diagnostics.record(path, "filename too long")
                result.documents_skipped += 1
                continue

            result.documents_written += 1
            result.attachments_referenced += len(converted.attachments)
            if state.update(str(path), converted.markdown):
                result.documents_changed += 1
            else:
                result.documents_unchanged += 1

        state.save()

        if isinstance(stager, AttachmentDownloader):
            result.attachments_downloaded = stager.downloaded
        result.warnings = len(diagnostics)
        result.results_file = vault.write_document(Path(settings.results_filename), diagnostics.to_markdown())

        logger.success("Exported {} documents ({} changed), {} warnings",
                       result.documents_written, result.documents_changed, result.warnings)
        return result

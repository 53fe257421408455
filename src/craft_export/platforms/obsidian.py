"""Obsidian vault writer for converted documents."""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


class ObsidianVault:
    """Write Markdown files into an Obsidian vault directory."""

    def __init__(self, vault_path: Path):
        self.vault_path = vault_path
        logger.debug("ObsidianVault initialized: vault={}", vault_path)

    def write_document(self, relative_path: Path, content: str, created: Optional[datetime] = None) -> Path:
        """Write a markdown file, stamping it with the document's creation time."""
        filepath = self.vault_path / relative_path
        filepath.parent.mkdir(parents=True, exist_ok=True)

        try:
            filepath.write_text(content + "\n", encoding="utf-8")
            logger.debug("Wrote {} characters to {}", len(content), relative_path)
        except OSError as e:
            logger.error("Failed to write document {}: {}", relative_path, e)
            raise

        if created is not None:
            timestamp = created.timestamp()
            os.utime(filepath, (timestamp, timestamp))

        return filepath

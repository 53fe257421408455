"""Content hashes of previously exported documents."""

import hashlib
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

STATE_FILENAME = ".craft_export_state.json"


@dataclass
class DocumentState:
    """Export state for a single document."""
    sha1: str
    exported: Optional[str] = None  # ISO format timestamp


def content_hash(markdown: str) -> str:
    return hashlib.sha1(markdown.encode("utf-8")).hexdigest()


class ExportState:
    """Manage export state in `<output>/.craft_export_state.json`."""

    def __init__(self, output_dir: Path):
        self.state_file = output_dir / STATE_FILENAME
        self._documents: Dict[str, DocumentState] = self.load()

    def load(self) -> Dict[str, DocumentState]:
        """Load state from file."""
        if not self.state_file.exists():
            logger.debug("No state file yet: {}", self.state_file)
            return {}

        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
            logger.debug("Loaded state from {}", self.state_file)
        except (OSError, json.JSONDecodeError) as e:
            # An unreadable state only means every document counts as changed
            logger.warning("State file not loaded, starting fresh: {}", e)
            return {}
        return {path: DocumentState(**doc) for path, doc in data.get("documents", {}).items()}

    def save(self):
        """Save state to file."""
        data = {"documents": {path: asdict(doc) for path, doc in sorted(self._documents.items())}}
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
            logger.debug("Saved state to {}", self.state_file)
        except OSError as e:
            logger.error("Failed to save state: {}", e)
            raise

    def get_document(self, relative_path: str) -> Optional[DocumentState]:
        return self._documents.get(relative_path)

    def update(self, relative_path: str, markdown: str) -> bool:
        """Record a document's new content; returns whether it changed."""
        sha = content_hash(markdown)
        previous = self.get_document(relative_path)
        changed = previous is None or previous.sha1 != sha
        if changed:
            self._documents[relative_path] = DocumentState(sha1=sha, exported=datetime.now().isoformat())
        return changed

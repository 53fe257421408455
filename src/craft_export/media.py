"""Attachment staging for file and image blocks."""

from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Optional

import requests
from loguru import logger
from PIL import Image, UnidentifiedImageError

from craft_export.document import ConversionScope
from craft_export.exceptions import AttachmentError
from craft_export.records import Block

TIFF_SIGNATURES = (b"II*\x00", b"MM\x00*")
TIFF_SUFFIXES = (".tif", ".tiff")


class AttachmentStager:
    """Make sure an attachment's payload exists at its relative output path."""

    def stage(self, block: Block, relative_path: PurePosixPath, scope: ConversionScope) -> Optional[Path]:
        raise NotImplementedError


class OfflineStager(AttachmentStager):
    """Stager for runs that only reference attachments without fetching them."""

    def stage(self, block: Block, relative_path: PurePosixPath, scope: ConversionScope) -> Optional[Path]:
        logger.debug("Not downloading {} for block {}", relative_path, block.id)
        return None


class AttachmentDownloader(AttachmentStager):
    """Download attachments from Craft's resource server into the output vault.

    `rawUrl` points at the file itself; `url` is only a preview rendering
    (e.g. the first page of a PDF).
    """

    def __init__(self, output_dir: Path, session: Optional[requests.Session] = None, timeout: float = 60):
        self.output_dir = output_dir
        self.session = session or requests.Session()
        self.timeout = timeout
        self.downloaded = 0
        logger.debug("AttachmentDownloader initialized: output={}", output_dir)

    def stage(self, block: Block, relative_path: PurePosixPath, scope: ConversionScope) -> Optional[Path]:
        target = self.output_dir / relative_path
        if target.exists():
            logger.debug("Attachment already present: {}", relative_path)
            return target

        url = block.properties.get("rawUrl")
        if not url:
            raise AttachmentError(f"attachment block {block.id} has no rawUrl")

        logger.info("Downloading {}: {}", relative_path, url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise AttachmentError(f"failed to download {url}: {e}") from e

        payload = response.content
        expected = int(block.properties.get("rawDataSize") or 0)
        if len(payload) != expected:
            scope.warn(f"size mismatch in attachment {relative_path}: expected {expected} got {len(payload)}")

        target.parent.mkdir(parents=True, exist_ok=True)
        if payload.startswith(TIFF_SIGNATURES) and target.suffix.lower() not in TIFF_SUFFIXES:
            self._convert_tiff(payload, target)
        else:
            target.write_bytes(payload)
        self.downloaded += 1
        logger.debug("Wrote {} bytes to {}", len(payload), target)
        return target

    @staticmethod
    def _convert_tiff(payload: bytes, target: Path):
        """Re-encode a TIFF payload in the format its target name promises."""
        logger.info("Converting TIFF attachment to {}", target.name)
        try:
            with Image.open(BytesIO(payload)) as image:
                image.save(target, format=Image.registered_extensions().get(target.suffix.lower(), "PNG"))
        except (OSError, UnidentifiedImageError) as e:
            target.unlink(missing_ok=True)
            raise AttachmentError(f"could not convert TIFF attachment {target.name}: {e}") from e

"""Configuration management for Craft Export."""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import toml
from loguru import logger

CONFIG_DIR = Path.home() / ".craft_export"


@dataclass
class ExportSettings:
    """Options for an export run."""
    output_dir: str = "out"
    attachments_folder: str = "Attachments"
    download_attachments: bool = True
    skip_patterns: List[str] = field(default_factory=lambda: ["Trash"])
    max_depth: int = 64
    strict: bool = True
    results_filename: str = "Craft Export Results.md"

    @property
    def output_path(self) -> Path:
        """Get output directory as Path object."""
        return Path(self.output_dir).expanduser()

    def is_skipped(self, relative_path: Path) -> bool:
        """Whether a document path matches one of the skip patterns."""
        text = str(relative_path)
        return any(pattern in text for pattern in self.skip_patterns)


class Config:
    """Manage user configuration in ~/.craft_export/config.toml."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or CONFIG_DIR
        self.config_file = self.config_dir / "config.toml"

    def _ensure_config_dir(self):
        """Ensure config directory exists."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Config directory: {}", self.config_dir)

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_file.exists()

    def load(self) -> dict:
        """Load configuration from file."""
        if not self.exists():
            logger.debug("Config file does not exist, returning empty config")
            return {}

        try:
            config_data = toml.load(self.config_file)
            logger.debug("Loaded config from {}", self.config_file)
            return config_data
        except (OSError, toml.TomlDecodeError) as e:
            logger.error("Failed to load config: {}", e)
            return {}

    def save(self, config_data: dict):
        """Save configuration to file."""
        self._ensure_config_dir()
        try:
            with open(self.config_file, 'w') as f:
                toml.dump(config_data, f)
            logger.debug("Saved config to {}", self.config_file)
        except OSError as e:
            logger.error("Failed to save config: {}", e)
            raise

    def get_settings(self) -> ExportSettings:
        """Get export settings, falling back to defaults for missing keys."""
        data = self.load().get('export', {})
        known = {f.name for f in fields(ExportSettings)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown export settings: {}", unknown)
        return ExportSettings(**{k: v for k, v in data.items() if k in known})

    def save_settings(self, settings: ExportSettings):
        """Save export settings."""
        data = self.load()
        data['export'] = asdict(settings)
        self.save(data)
        logger.info("Settings saved to {}", self.config_file)

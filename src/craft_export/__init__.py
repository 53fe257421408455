"""Convert Craft document exports into Markdown for Obsidian."""

__version__ = "0.1.0"

"""Exceptions raised while exporting a Craft space."""

from typing import List, Optional


class ExportError(Exception):
    """Base exception for export errors."""
    pass


class UnknownBlockType(ExportError):
    """Raised when a block record matches no classification rule."""
    pass


class UnknownSpanStyle(ExportError):
    """Raised when a style span carries a tag the resolver doesn't know."""
    pass


class SchemaViolation(ExportError):
    """Raised when a record carries keys or values outside its allow-list."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems or []

    def __str__(self):
        if not self.problems:
            return super().__str__()
        return super().__str__() + "\n" + "\n".join(f"  - {p}" for p in self.problems)


class DataIntegrityError(ExportError):
    """Raised when records reference each other inconsistently."""
    pass


class AttachmentError(ExportError):
    """Raised when an attachment cannot be staged."""
    pass

"""Warnings collected per document while converting."""

from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from loguru import logger
from rich.markup import escape


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found in one document."""
    message: str
    detail: Optional[str] = None

    def to_markdown(self) -> str:
        """Render as an unchecked task so the results file doubles as a todo list."""
        md = f"- [ ] {self.message}\n"
        if self.detail:
            md += f"\n```\n{self.detail}\n```\n\n"
        return md

    def to_console(self) -> str:
        """Render with rich markup."""
        out = f"[red]{escape(self.message)}[/red]"
        if self.detail:
            out += f"\n[yellow]{escape(self.detail)}[/yellow]"
        return out


class Diagnostics:
    """Append-only sink of diagnostics keyed by document path.

    Insertion order is preserved both across documents and within each one.
    """

    def __init__(self):
        self._items: Dict[Path, List[Diagnostic]] = OrderedDict()

    def record(self, document_path: Union[str, Path], message: str, detail: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(message, detail)
        self._items.setdefault(Path(document_path), []).append(diagnostic)
        logger.warning("{}: {}", document_path, message)
        return diagnostic

    def for_document(self, document_path: Union[str, Path]) -> List[Diagnostic]:
        return list(self._items.get(Path(document_path), []))

    def items(self) -> Iterator[Tuple[Path, List[Diagnostic]]]:
        for path, diagnostics in self._items.items():
            yield path, list(diagnostics)

    def __len__(self) -> int:
        return sum(len(d) for d in self._items.values())

    def __bool__(self) -> bool:
        return bool(self._items)

    def to_markdown(self) -> str:
        """Render the results report, one section per document."""
        sections = []
        for path, diagnostics in self._items.items():
            body = "".join(d.to_markdown() for d in diagnostics)
            sections.append(f"## [[{path.name}]]\n\n{body}\n")
        return "".join(sections)

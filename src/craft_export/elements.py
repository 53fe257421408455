"""Markdown elements and the nesting contexts that group them."""

from dataclasses import dataclass, field
from typing import List

HEADING_LEVELS = {
    "title": 1,
    "subtitle": 2,
    "heading": 3,
    "strong": 4,
}


class Element:
    """Something that renders to a chunk of Markdown."""

    def to_markdown(self) -> str:
        raise NotImplementedError


@dataclass
class Text(Element):
    content: str

    def to_markdown(self) -> str:
        return self.content


@dataclass
class Heading(Element):
    content: str
    level: int

    def to_markdown(self) -> str:
        return f"{'#' * self.level} {self.content}"


@dataclass
class ListItem(Element):
    """One list entry; indentation is four spaces per level."""
    content: str
    indent: int
    list_style: str
    checked: bool
    counter: int

    def to_markdown(self) -> str:
        marker = f"{self.counter}." if self.list_style == "numbered" else "-"
        check = ""
        if self.list_style == "todo":
            check = " [x]" if self.checked else " [ ]"
        return f"{' ' * self.indent * 4}{marker}{check} {self.content}"


@dataclass
class Code(Element):
    content: str
    language: str = ""

    def to_markdown(self) -> str:
        language = "" if self.language in (None, "other") else self.language
        return f"```{language}\n{self.content}\n```"


@dataclass
class Link(Element):
    url: str
    label: str

    def to_markdown(self) -> str:
        return f"[{self.label}]({self.url})"


@dataclass
class Embed(Element):
    """Reference to a staged attachment."""
    filename: str
    relative_path: str

    def to_markdown(self) -> str:
        return f"![{self.filename}]({self.relative_path.replace(' ', '%20')})"


@dataclass
class Separator(Element):
    def to_markdown(self) -> str:
        return "---"


@dataclass
class Context(Element):
    """A frame on the converter's nesting stack."""
    elements: List[Element] = field(default_factory=list)

    separator = "\n\n"

    def append(self, element: Element):
        self.elements.append(element)

    def render_elements(self) -> str:
        rendered = (e.to_markdown() for e in self.elements)
        return self.separator.join(text for text in rendered if text)

    def to_markdown(self) -> str:
        return self.render_elements()


@dataclass
class PlainContext(Context):
    pass


@dataclass
class ListContext(Context):
    """Consecutive list items; numbered items count up from 1."""
    counter: int = 1

    separator = "\n"

    def increment(self):
        self.counter += 1


@dataclass
class BlockQuoteContext(Context):
    def to_markdown(self) -> str:
        text = self.render_elements()
        if not text:
            return ""
        return "\n".join(f"> {line}" for line in text.split("\n"))

"""Inline style spans to Markdown markup."""

import re
from datetime import date
from typing import Iterable, List, Tuple
from urllib.parse import parse_qs, urlsplit

from loguru import logger

from craft_export.document import ConversionScope
from craft_export.exceptions import UnknownSpanStyle
from craft_export.records import (
    BOLD,
    CODE,
    HIGHLIGHT,
    ITALIC,
    LINK,
    RUN_FLAGS,
    STRIKETHROUGH,
    Span,
)
from craft_export.repository import Repository, format_day

# Innermost first; the link, when present, sits inside all of them
STYLE_MARKERS = (
    (CODE, "`"),
    (HIGHLIGHT, "=="),
    (BOLD, "**"),
    (ITALIC, "_"),
    (STRIKETHROUGH, "~~"),
)
KNOWN_STYLES = frozenset([LINK] + [style for style, _ in STYLE_MARKERS])
STYLE_ORDER = [style for _, style in RUN_FLAGS]

DAY_SCHEME = "day"
CROSS_REFERENCE_SCHEME = "craftdocs"

# Some links arrive already rendered into the content
RENDERED_LINK = re.compile(r"\[(.+)\]\((.+)")
RENDERED_REFERENCE = re.compile(r"\[\[(.+)\]\]")


def overlaps(left: Span, right: Span) -> bool:
    """Whether two spans, `left` starting no later than `right`, share a character."""
    return left.contains(right.start) or right.contains(left.end)


def ruler(content: str, spans: Iterable[Span]) -> str:
    """Draw each span's position and styles underneath the content."""
    lines = [content]
    for span in spans:
        styles = ", ".join(s for s in STYLE_ORDER if s in span.styles)
        line = f"{' ' * span.start}{'^' * span.length} [{styles}] {span.start}..{span.end}"
        if LINK in span.styles:
            line += f" {span.url}"
        lines.append(line)
    return "\n".join(lines)


class SpanResolver:
    """Apply a block's style spans to its content."""

    def __init__(self, repository: Repository):
        self.repository = repository

    def format(self, content: str, spans: Iterable[Span], scope: ConversionScope) -> str:
        """Return `content` with every span wrapped in its Markdown markers.

        Overlapping spans can't be nested reliably, so the content comes back
        untouched and a diagnostic shows where the spans sit.
        """
        spans = list(spans)
        for span in spans:
            unknown = span.styles - KNOWN_STYLES
            if unknown:
                raise UnknownSpanStyle(f"unknown span style {sorted(unknown)} in {scope.document_path}")

        ordered = sorted((s for s in spans if s.length > 0), key=lambda s: (s.start, s.end))
        if any(overlaps(left, right) for left, right in zip(ordered, ordered[1:])):
            scope.warn("skipping overlapping styles", ruler(content, spans))
            return content

        # Spans are disjoint here, so one left-to-right pass gives the same
        # result as rewriting the content rightmost span first.
        parts: List[str] = []
        cursor = 0
        for span in ordered:
            parts.append(content[cursor:span.start])
            parts.append(self._render(content, span, scope))
            cursor = span.end + 1
        parts.append(content[cursor:])
        return "".join(parts)

    def _render(self, content: str, span: Span, scope: ConversionScope) -> str:
        prefix, text, suffix = "", content[span.start:span.end + 1], ""
        if LINK in span.styles:
            prefix, text, suffix = self._link(content, span, text, scope)
        for style, marker in STYLE_MARKERS:
            if style in span.styles:
                prefix = marker + prefix
                suffix = suffix + marker
        return prefix + text + suffix

    def _link(self, content: str, span: Span, text: str, scope: ConversionScope) -> Tuple[str, str, str]:
        rest = content[span.start:]
        if RENDERED_LINK.match(rest) or RENDERED_REFERENCE.match(rest):
            return "", text, ""

        url = span.url or ""
        parts = urlsplit(url)

        if parts.scheme == DAY_SCHEME:
            try:
                day = date.fromisoformat(parts.netloc)
            except ValueError:
                scope.warn(f"skipping day link: `{text}` linking to `{url}`")
                return "", text, ""
            return "[[", format_day(day), "]]"

        if parts.scheme == CROSS_REFERENCE_SCHEME:
            return self._cross_reference(parts.query, url, text, scope)

        if text == url:
            return "[", text, f"]({text})"
        return "[", text, f"]({url})"

    def _cross_reference(self, query: str, url: str, text: str, scope: ConversionScope) -> Tuple[str, str, str]:
        block_id = parse_qs(query).get("blockId", [None])[0]
        target = self.repository.resolve(block_id) if block_id else None

        if target is None:
            scope.warn(f"skipping block link: `{text}` linking to nowhere", url)
            return "", text, ""

        if not self.repository.is_root(target):
            document = self.repository.documents.get(target.document_id)
            where = self.repository.document_path(document) if document else f"unknown document {target.document_id}"
            scope.warn(f"skipping block link: `{text}` linking to `{target.content}` in `{where}`")
            return "", text, ""

        name = self.repository.document_path(self.repository.document_of(target)).stem
        logger.debug("Resolved block link {} to [[{}]]", block_id, name)
        return "[[", name, "]]"

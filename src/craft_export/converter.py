"""Convert Craft block trees to Markdown."""

import sys
from pathlib import PurePosixPath
from typing import List

from loguru import logger

from craft_export.diagnostics import Diagnostics
from craft_export.document import ConversionScope, ConvertedDocument
from craft_export.elements import (
    HEADING_LEVELS,
    BlockQuoteContext,
    Code,
    Context,
    Embed,
    Heading,
    Link,
    ListContext,
    ListItem,
    PlainContext,
    Separator,
    Text,
)
from craft_export.exceptions import AttachmentError, UnknownBlockType
from craft_export.media import AttachmentStager, OfflineStager
from craft_export.records import Block, Document
from craft_export.repository import Repository
from craft_export.schema import SemanticType
from craft_export.spans import SpanResolver, ruler

DEFAULT_MAX_DEPTH = 64
# Each nesting level costs up to this many interpreter frames
FRAMES_PER_LEVEL = 4
STACK_RESERVE = 200
SUBPAGE_TAG = "#subpage"


def depth_limit() -> int:
    """Deepest nesting the interpreter's recursion limit leaves room for."""
    return max((sys.getrecursionlimit() - STACK_RESERVE) // FRAMES_PER_LEVEL, 1)


class MarkdownConverter:
    """Walk a block's children and render them as Markdown.

    Nesting is tracked with an explicit stack of contexts: plain text, a run
    of consecutive list items, or a block quote. Lists only group consecutive
    list blocks and quotes are a single level deep.
    """

    def __init__(
        self,
        repository: Repository,
        stager: AttachmentStager = None,
        attachments_folder: str = "Attachments",
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.repository = repository
        self.spans = SpanResolver(repository)
        self.stager = stager or OfflineStager()
        self.attachments_folder = attachments_folder

        limit = depth_limit()
        if max_depth > limit:
            logger.warning("max_depth {} exceeds what the recursion limit allows, using {}", max_depth, limit)
            max_depth = limit
        self.max_depth = max_depth

        self._handlers = {
            SemanticType.PAGE: self._page,
            SemanticType.LIST: self._list_item,
            SemanticType.TEXT: self._text,
            SemanticType.HEADING: self._heading,
            SemanticType.URL: self._url,
            SemanticType.CODE: self._code,
            SemanticType.SEPARATOR: self._separator,
            SemanticType.FILE: self._attachment,
            SemanticType.IMAGE: self._attachment,
            SemanticType.TABLE: self._table,
        }

    def convert_document(self, document: Document, diagnostics: Diagnostics) -> ConvertedDocument:
        """Convert a whole document, attributing diagnostics to its path."""
        path = self.repository.document_path(document)
        scope = ConversionScope(path, diagnostics)

        folders = self.repository.folders_containing(document)
        if len(folders) > 1:
            scope.warn(
                f"document is listed in {len(folders)} folders, exported under the first",
                "\n".join(str(self.repository.folder_path(f)) for f in folders),
            )

        logger.debug("Converting {}", path)
        markdown = self.convert(self.repository.root_block(document), scope)
        return ConvertedDocument(document.id, path, markdown, list(scope.attachments))

    def convert(self, block: Block, scope: ConversionScope) -> str:
        """Render the children of `block`; the block itself is left to the caller."""
        if scope.depth >= self.max_depth:
            scope.warn(f"skipping content nested deeper than {self.max_depth} levels", block.content)
            return ""

        stack: List[Context] = [PlainContext()]
        quoted = False

        for child in self.repository.children(block):
            if isinstance(stack[-1], ListContext) and child.semantic_type != SemanticType.LIST:
                self._flush(stack)

            focused = child.focused and not scope.quoted
            if focused != quoted:
                if isinstance(stack[-1], ListContext):
                    self._flush(stack)
                if focused:
                    stack.append(BlockQuoteContext())
                else:
                    self._flush(stack)
                quoted = focused

            handler = self._handlers.get(child.semantic_type)
            if handler is None:
                raise UnknownBlockType(f"unknown block type {child.semantic_type!r} in {scope.document_path}")
            handler(child, stack, scope)

        while len(stack) > 1:
            self._flush(stack)
        return stack[0].to_markdown()

    @staticmethod
    def _flush(stack: List[Context]):
        top = stack.pop()
        stack[-1].append(top)

    @staticmethod
    def _nested(stack: List[Context], scope: ConversionScope) -> ConversionScope:
        return scope.nested(quoted=any(isinstance(c, BlockQuoteContext) for c in stack))

    def _format(self, block: Block, scope: ConversionScope) -> str:
        return self.spans.format(block.content, block.spans, scope)

    def _append_subpage(self, context: Context, title: str, body: str):
        context.append(Heading(title, level=3))
        context.append(Text(body))
        context.append(Separator())

    def _page(self, block: Block, stack: List[Context], scope: ConversionScope):
        title = f"{self._format(block, scope)} {SUBPAGE_TAG}"
        self._append_subpage(stack[-1], title, self.convert(block, self._nested(stack, scope)))

    def _list_item(self, block: Block, stack: List[Context], scope: ConversionScope):
        if not block.content.strip():
            return

        if not isinstance(stack[-1], ListContext):
            stack.append(ListContext())
        current = stack[-1]

        current.append(ListItem(
            self._format(block, scope),
            indent=block.indentation,
            list_style=block.list_style,
            checked=block.todo_checked,
            counter=current.counter,
        ))

        if block.has_children:
            children = self.convert(block, self._nested(stack, scope))
            if self.repository.first_child(block).semantic_type == SemanticType.LIST:
                current.append(Text(children))
            else:
                # Anything but a nested list is shown as an embedded sub-page
                self._append_subpage(current, SUBPAGE_TAG, children)

        current.increment()

    def _text(self, block: Block, stack: List[Context], scope: ConversionScope):
        if not block.content.strip():
            return
        stack[-1].append(Text(self._format(block, scope)))
        self._append_children(block, stack, scope)

    def _heading(self, block: Block, stack: List[Context], scope: ConversionScope):
        level = HEADING_LEVELS[block.text_style]
        stack[-1].append(Heading(self._format(block, scope), level=level))
        self._append_children(block, stack, scope)

    def _append_children(self, block: Block, stack: List[Context], scope: ConversionScope):
        if block.has_children:
            children = self.convert(block, self._nested(stack, scope))
            if children:
                stack[-1].append(Text(children))

    def _url(self, block: Block, stack: List[Context], scope: ConversionScope):
        url = block.properties.get("url") or block.content
        label = block.properties.get("title") or block.properties.get("description") or url
        stack[-1].append(Link(url=url, label=label))

    def _code(self, block: Block, stack: List[Context], scope: ConversionScope):
        stack[-1].append(Code(block.content, language=block.properties.get("language") or ""))

    def _separator(self, block: Block, stack: List[Context], scope: ConversionScope):
        # Separators ignore indentation and quoting
        stack[0].append(Separator())

    def _attachment(self, block: Block, stack: List[Context], scope: ConversionScope):
        attachment = self.repository.attachment(block.id)
        relative_path = PurePosixPath(self.attachments_folder) / attachment.filename
        try:
            self.stager.stage(block, relative_path, scope)
        except AttachmentError as e:
            scope.warn(f"attachment {relative_path} could not be staged", str(e))
        scope.attachments.append(attachment)
        stack[-1].append(Embed(attachment.filename, str(relative_path)))

    def _table(self, block: Block, stack: List[Context], scope: ConversionScope):
        scope.warn("skipping table")


def describe_tree(repository: Repository, block: Block, indent: int = 0) -> str:
    """Outline a block's subtree the way the converter sees it.

    Each block shows its semantic type, quote flag and raw properties, then
    its content with a ruler under it for every style span.
    """
    pad = "  " * indent
    lines = []
    for child in repository.children(block):
        lines.append(f"{pad}{child.semantic_type.value} focus:{child.focused} {child.properties.values}")
        lines.append(f"{pad}  {child.content}")
        for rule in ruler("", child.spans).split("\n")[1:]:
            lines.append(f"{pad}  {rule}")
        if child.has_children:
            lines.append(describe_tree(repository, child, indent + 1))
    return "\n".join(lines)

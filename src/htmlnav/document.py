"""Document construction: parse markup with lxml and expose the root node."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from lxml import etree

from .errors import ParseError, generate_error_message
from .node import HTMLNode
from .tree import build_tree

if TYPE_CHECKING:
    from .tree import NodeTree

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


class DocumentError(ValueError):
    """Raised when a document cannot be built from the given markup."""

    code: str

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        super().__init__(generate_error_message(code, detail))


class StrictModeError(SyntaxError):
    """Raised when strict mode encounters a parse error."""

    error: ParseError

    def __init__(self, error: ParseError) -> None:
        self.error = error
        super().__init__(error.message)
        self.lineno = error.line
        self.offset = error.column


class ParseOptions:
    __slots__ = ("huge_tree", "no_network", "recover", "remove_blank_text", "remove_comments", "remove_pis")

    def __init__(
        self,
        recover: bool = True,
        remove_blank_text: bool = False,
        remove_comments: bool = False,
        remove_pis: bool = False,
        huge_tree: bool = False,
        no_network: bool = True,
    ) -> None:
        self.recover = bool(recover)
        self.remove_blank_text = bool(remove_blank_text)
        self.remove_comments = bool(remove_comments)
        self.remove_pis = bool(remove_pis)
        self.huge_tree = bool(huge_tree)
        self.no_network = bool(no_network)

    def parser_kwargs(self) -> dict[str, bool]:
        return {
            "recover": self.recover,
            "remove_blank_text": self.remove_blank_text,
            "remove_comments": self.remove_comments,
            "remove_pis": self.remove_pis,
            "huge_tree": self.huge_tree,
            "no_network": self.no_network,
        }


class Document:
    """A parsed markup document.

    Construction is all-or-nothing: either the whole tree is available or a
    `DocumentError` is raised. Node handles keep their document alive.
    """

    __slots__ = ("encoding", "errors", "options", "root", "tree")

    encoding: str | None
    errors: list[ParseError]
    options: ParseOptions
    root: HTMLNode
    tree: NodeTree

    is_html: bool = False

    def __init__(
        self,
        data: str | bytes | bytearray | memoryview | None,
        *,
        encoding: str | None = None,
        options: ParseOptions | None = None,
        collect_errors: bool = False,
        strict: bool = False,
    ) -> None:
        if data is None:
            raise DocumentError("invalid-data")

        # libxml2 only knows its own codec names, so a caller-given encoding
        # is applied here and the parser always receives UTF-8.
        raw: bytes
        parser_encoding: str | None = DEFAULT_ENCODING
        if isinstance(data, str):
            try:
                data.encode(encoding or DEFAULT_ENCODING)
            except (LookupError, UnicodeEncodeError) as exc:
                raise DocumentError("invalid-data", str(exc)) from exc
            raw = data.encode(DEFAULT_ENCODING)
        elif encoding is not None:
            try:
                raw = bytes(data).decode(encoding).encode(DEFAULT_ENCODING)
            except (LookupError, UnicodeDecodeError) as exc:
                raise DocumentError("invalid-data", str(exc)) from exc
        else:
            raw = bytes(data)
            parser_encoding = None

        if not raw:
            raise DocumentError("data-empty")

        self.options = options or ParseOptions()
        try:
            parser = self._new_parser(parser_encoding)
            etree_doc = etree.parse(io.BytesIO(raw), parser)
        except (etree.XMLSyntaxError, etree.ParserError, LookupError) as exc:
            raise DocumentError("could-not-parse", str(exc)) from exc

        self.errors = [ParseError.from_log_entry(entry) for entry in parser.error_log] if collect_errors or strict else []
        if strict and self.errors:
            raise StrictModeError(self.errors[0])

        root_element = etree_doc.getroot()
        if root_element is None:
            raise DocumentError("missing-root-element")
        self._check_root(root_element)

        self.encoding = encoding or etree_doc.docinfo.encoding
        self.tree = build_tree(etree_doc, html=self.is_html)
        root_index = self.tree.index_of_element(root_element)
        if root_index is None:  # pragma: no cover
            raise DocumentError("missing-root-element")
        self.root = HTMLNode(self, root_index)
        logger.debug(
            "Parsed %s document: %d nodes, encoding %s, %d recovered error(s)",
            "HTML" if self.is_html else "XML",
            len(self.tree),
            self.encoding,
            len(parser.error_log),
        )

    def _new_parser(self, encoding: str | None) -> Any:
        return etree.XMLParser(encoding=encoding, **self.options.parser_kwargs())

    def _check_root(self, root_element: Any) -> None:
        return None

    @classmethod
    def from_path(cls, path: str | Path, **kwargs: Any) -> Document:
        """Read and parse the file at ``path``.

        Raises:
            DocumentError: ``unreadable-source`` when the file cannot be read
        """
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise DocumentError("unreadable-source", str(exc)) from exc
        return cls(data, **kwargs)

    @classmethod
    def from_file(cls, fileobj: IO[Any], **kwargs: Any) -> Document:
        """Read and parse an open file object (text or binary)."""
        try:
            data = fileobj.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentError("unreadable-source", str(exc)) from exc
        return cls(data, **kwargs)

    @property
    def document_node(self) -> HTMLNode:
        """The node above the root element."""
        return HTMLNode(self, 0)

    def node_for_xpath(self, query: str) -> HTMLNode | None:
        """Delegates to root.node_for_xpath()."""
        return self.root.node_for_xpath(query)

    def nodes_for_xpath(self, query: str) -> list[HTMLNode]:
        """Delegates to root.nodes_for_xpath()."""
        return self.root.nodes_for_xpath(query)

    def xpath(self, query: str) -> list[HTMLNode]:
        return self.root.nodes_for_xpath(query)

    def to_html(self) -> str:
        return self.document_node.html_string

    def to_text(self, separator: str = " ", strip: bool = True) -> str:
        """Return the document's concatenated text.

        Delegates to `root.to_text(separator=..., strip=...)`.
        """
        return self.root.to_text(separator=separator, strip=strip)


class XMLDocument(Document):
    """A document parsed with the XML parser; any root element is accepted."""

    __slots__ = ()


class HTMLDocument(Document):
    """A document parsed with the HTML parser. The root element must be ``<html>``."""

    __slots__ = ()

    is_html = True

    def _new_parser(self, encoding: str | None) -> Any:
        kwargs = self.options.parser_kwargs()
        return etree.HTMLParser(encoding=encoding, **kwargs)

    def _check_root(self, root_element: Any) -> None:
        tag = root_element.tag
        if not isinstance(tag, str) or tag.lower() != "html":
            raise DocumentError("not-html", f"root element is {tag!r}")

    @property
    def head(self) -> HTMLNode | None:
        return self.root.child_of_tag("head")

    @property
    def body(self) -> HTMLNode | None:
        return self.root.child_of_tag("body")

    @property
    def title(self) -> str | None:
        """The value of the title tag in the head node."""
        head = self.head
        if head is None:
            return None
        title = head.child_of_tag("title")
        return title.string_value if title is not None else None

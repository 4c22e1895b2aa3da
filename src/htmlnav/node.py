from __future__ import annotations

from datetime import datetime
from functools import total_ordering
from typing import TYPE_CHECKING, Any

from .search import MatchMode, Predicate, Scope, preorder, search
from .serialize import to_html
from .tree import KIND_DISPLAY_NAMES, NodeKind, compare_document_order
from .xpath import XPathTemplate, evaluate

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import tzinfo

    from .document import Document
    from .tree import NodeTree


CLASS_KEY = "class"
ID_KEY = "id"


def _collapse_whitespace(s: str | None) -> str | None:
    if s is None:
        return None
    return " ".join(s.split())


def _to_int(s: str | None) -> int | None:
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        return None


def _to_float(s: str | None) -> float | None:
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def _to_date(s: str | None, date_format: str, timezone: tzinfo | None) -> datetime | None:
    if not s:
        return None
    try:
        value = datetime.strptime(s, date_format)
    except ValueError:
        return None
    if timezone is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone)
    return value


def _descendant_text_indices(tree: NodeTree, origin: int) -> Iterator[int]:
    return (index for index in preorder(tree, tree.first_child[origin], True) if tree.kind[index] == NodeKind.TEXT)


def _stripped_texts(texts: Iterator[str]) -> list[str]:
    out: list[str] = []
    for text in texts:
        stripped = text.strip()
        if stripped:
            out.append(stripped)
    return out


@total_ordering
class HTMLNode:
    """A handle on one node of a parsed document.

    Handles are cheap: they hold the owning document and the node's index,
    and are created on demand whenever navigation or a search produces a
    node. A handle keeps its document alive. Two handles are equal when they
    point at the same position of the same document.
    """

    __slots__ = ("_document", "_index")

    _document: Document
    _index: int

    def __init__(self, document: Document, index: int) -> None:
        if not 0 <= index < len(document.tree):
            raise IndexError(f"Node index {index} is outside the document")
        self._document = document
        self._index = index

    # ------------------------------------------------------------------
    # Identity

    @property
    def document(self) -> Document:
        return self._document

    @property
    def tree(self) -> NodeTree:
        return self._document.tree

    @property
    def index(self) -> int:
        """Document-order position of this node."""
        return self._index

    def wrap(self, index: int | None) -> HTMLNode | None:
        """Return a handle on another node of the same document."""
        if index is None:
            return None
        return HTMLNode(self._document, index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HTMLNode):
            return NotImplemented
        return self.tree is other.tree and self._index == other._index

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, HTMLNode) or self.tree is not other.tree:
            return NotImplemented
        return compare_document_order(self._index, other._index) < 0

    def __hash__(self) -> int:
        return hash((id(self.tree), self._index))

    def compare_document_order(self, other: HTMLNode) -> int:
        """Return -1, 0 or 1 as this node precedes, is, or follows ``other``.

        Raises:
            ValueError: If the nodes belong to different documents
        """
        if self.tree is not other.tree:
            raise ValueError("Nodes belong to different documents")
        return compare_document_order(self._index, other._index)

    def __repr__(self) -> str:
        tag = self.tag_name
        if tag is not None:
            return f"<HTMLNode {self.element_type} {tag!r} #{self._index}>"
        return f"<HTMLNode {self.element_type} #{self._index}>"

    def describe(self) -> str:
        """Summary of kind, tag, child count, attributes and markup."""
        return (
            f"type: {self.element_type} - tag name: {self.tag_name or 'n/a'} - "
            f"number of children: {self.child_count}\n"
            f"attributes: {self.attributes!r}\n"
            f"HTML: {self.html_string or 'n/a'}"
        )

    # ------------------------------------------------------------------
    # Navigation

    @property
    def parent(self) -> HTMLNode | None:
        return self.wrap(self.tree.parent[self._index])

    @property
    def next_sibling(self) -> HTMLNode | None:
        return self.wrap(self.tree.next_sibling[self._index])

    @property
    def previous_sibling(self) -> HTMLNode | None:
        return self.wrap(self.tree.previous_sibling[self._index])

    @property
    def first_child(self) -> HTMLNode | None:
        return self.wrap(self.tree.first_child[self._index])

    @property
    def last_child(self) -> HTMLNode | None:
        return self.wrap(self.tree.last_child[self._index])

    def __iter__(self) -> Iterator[HTMLNode]:
        """Iterate over the children, skipping text nodes.

        Every call starts a fresh walk from the first child.
        """
        tree = self.tree
        for index in tree.child_indices(self._index):
            if tree.kind[index] != NodeKind.TEXT:
                yield HTMLNode(self._document, index)

    @property
    def children(self) -> list[HTMLNode]:
        """The first level of children, without text nodes."""
        return list(self)

    def child_at(self, index: int) -> HTMLNode | None:
        """Return the child at ``index`` of `children`, or None when out of range."""
        children = self.children
        if 0 <= index < len(children):
            return children[index]
        return None

    @property
    def child_count(self) -> int:
        """Number of element children."""
        tree = self.tree
        return sum(1 for index in tree.child_indices(self._index) if tree.kind[index] == NodeKind.ELEMENT)

    def has_child_nodes(self) -> bool:
        return self.tree.first_child[self._index] is not None

    # ------------------------------------------------------------------
    # Kind and name

    @property
    def kind(self) -> NodeKind:
        return self.tree.kind[self._index]

    @property
    def element_type(self) -> str:
        return KIND_DISPLAY_NAMES.get(self.kind, "n/a")

    @property
    def is_attribute_node(self) -> bool:
        return self.kind == NodeKind.ATTRIBUTE

    @property
    def is_document_node(self) -> bool:
        return self.kind in (NodeKind.DOCUMENT, NodeKind.HTML_DOCUMENT)

    @property
    def is_element_node(self) -> bool:
        return self.kind == NodeKind.ELEMENT

    @property
    def is_text_node(self) -> bool:
        return self.kind == NodeKind.TEXT

    @property
    def tag_name(self) -> str | None:
        """The tag name; None for text, comment and document nodes."""
        return self.tree.name[self._index]

    # ------------------------------------------------------------------
    # Attributes

    def attribute(self, name: str) -> str | None:
        """Return the value of attribute ``name``, or None when absent."""
        tree = self.tree
        for attr in tree.attribute_indices(self._index):
            if tree.name[attr] == name:
                return tree.content[attr]
        return None

    @property
    def attributes(self) -> dict[str, str]:
        tree = self.tree
        result: dict[str, str] = {}
        for attr in tree.attribute_indices(self._index):
            result[tree.name[attr] or ""] = tree.content[attr] or ""
        return result

    @property
    def attribute_nodes(self) -> list[HTMLNode]:
        return [HTMLNode(self._document, attr) for attr in self.tree.attribute_indices(self._index)]

    @property
    def class_value(self) -> str | None:
        return self.attribute(CLASS_KEY)

    @property
    def id_value(self) -> str | None:
        return self.attribute(ID_KEY)

    @property
    def href_value(self) -> str | None:
        return self.attribute("href")

    @property
    def src_value(self) -> str | None:
        return self.attribute("src")

    # ------------------------------------------------------------------
    # Direct text value

    @property
    def raw_string_value(self) -> str | None:
        """The text of the first child when it is a text node, as is."""
        return self.tree.direct_text(self._index)

    @property
    def string_value(self) -> str | None:
        raw = self.raw_string_value
        return raw.strip() if raw is not None else None

    @property
    def string_value_collapsing_whitespace(self) -> str | None:
        return _collapse_whitespace(self.string_value)

    @property
    def integer_value(self) -> int | None:
        return _to_int(self.string_value)

    @property
    def float_value(self) -> float | None:
        return _to_float(self.string_value)

    @property
    def content_float_value(self) -> float | None:
        return _to_float(self.text_content)

    def date_value(self, date_format: str, timezone: tzinfo | None = None) -> datetime | None:
        """Parse the string value with a `datetime.strptime` format.

        Naive results get ``timezone`` attached when one is given. Returns
        None when there is no value or it does not fit the format.
        """
        return _to_date(self.string_value, date_format, timezone)

    def content_date_value(self, date_format: str, timezone: tzinfo | None = None) -> datetime | None:
        """Like `date_value`, but parses the text content."""
        return _to_date(self.text_content, date_format, timezone)

    # ------------------------------------------------------------------
    # Text content of the node and its descendants

    @property
    def raw_text_content(self) -> str:
        return self.tree.text_content(self._index)

    @property
    def text_content(self) -> str:
        return self.raw_text_content.strip()

    @property
    def text_content_collapsing_whitespace(self) -> str:
        return " ".join(self.raw_text_content.split())

    @property
    def text_content_of_children(self) -> list[str]:
        """Stripped, non-empty text content of each direct child."""
        tree = self.tree
        return _stripped_texts(tree.text_content(index) for index in tree.child_indices(self._index))

    @property
    def text_content_of_descendants(self) -> list[str]:
        """Stripped, non-empty content of every descendant text node, in document order."""
        tree = self.tree
        texts = (
            tree.content[index] or ""
            for index in _descendant_text_indices(tree, self._index)
        )
        return _stripped_texts(texts)

    # ------------------------------------------------------------------
    # Markup

    @property
    def html_string(self) -> str:
        """Markup of this node and its subtree, stripped of outer whitespace."""
        return to_html(self.tree, self._index).strip()

    @property
    def html_content(self) -> str:
        """Markup of this node and its subtree in the document's encoding."""
        return to_html(self.tree, self._index, encoding=self._document.encoding or "utf-8")

    def to_text(self, separator: str = " ", strip: bool = True) -> str:
        """Return the concatenated text of this node's descendants.

        - `separator` controls how text nodes are joined (default: a single space).
        - `strip=True` strips each text node and drops empty segments.
        """
        if strip:
            return separator.join(self.text_content_of_descendants)
        tree = self.tree
        return separator.join(tree.content[index] or "" for index in _descendant_text_indices(tree, self._index))

    # ------------------------------------------------------------------
    # Searching

    def search(
        self,
        predicate: Predicate,
        scope: str = Scope.DESCENDANT,
        *,
        recursive: bool = True,
        first: bool = False,
    ) -> Any:
        """Run ``predicate`` over ``scope``; see `htmlnav.search.search`."""
        return search(self, predicate, scope, recursive=recursive, first=first)

    # Attribute predicates

    def descendant_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> HTMLNode | None:
        """Return the first descendant with attribute ``name`` whose value satisfies ``match``.

        Without ``value`` any node carrying the attribute matches.
        """
        return search(self, Predicate.attribute(name, value, match), Scope.DESCENDANT, first=True)

    def descendants_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> list[HTMLNode]:
        return search(self, Predicate.attribute(name, value, match), Scope.DESCENDANT)

    def child_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> HTMLNode | None:
        return search(self, Predicate.attribute(name, value, match), Scope.CHILD, first=True)

    def children_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> list[HTMLNode]:
        return search(self, Predicate.attribute(name, value, match), Scope.CHILD)

    def sibling_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> HTMLNode | None:
        """Return the first following sibling with a matching attribute."""
        return search(self, Predicate.attribute(name, value, match), Scope.SIBLING, first=True)

    def siblings_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> list[HTMLNode]:
        return search(self, Predicate.attribute(name, value, match), Scope.SIBLING)

    # Class and id: whole-value equality, not token matching

    def descendant_with_class(self, value: str) -> HTMLNode | None:
        return self.descendant_with_attribute(CLASS_KEY, value)

    def descendants_with_class(self, value: str) -> list[HTMLNode]:
        return self.descendants_with_attribute(CLASS_KEY, value)

    def child_with_class(self, value: str) -> HTMLNode | None:
        return self.child_with_attribute(CLASS_KEY, value)

    def children_with_class(self, value: str) -> list[HTMLNode]:
        return self.children_with_attribute(CLASS_KEY, value)

    def sibling_with_class(self, value: str) -> HTMLNode | None:
        return self.sibling_with_attribute(CLASS_KEY, value)

    def siblings_with_class(self, value: str) -> list[HTMLNode]:
        return self.siblings_with_attribute(CLASS_KEY, value)

    def descendant_with_id(self, value: str) -> HTMLNode | None:
        return self.descendant_with_attribute(ID_KEY, value)

    def descendants_with_id(self, value: str) -> list[HTMLNode]:
        return self.descendants_with_attribute(ID_KEY, value)

    def child_with_id(self, value: str) -> HTMLNode | None:
        return self.child_with_attribute(ID_KEY, value)

    def children_with_id(self, value: str) -> list[HTMLNode]:
        return self.children_with_attribute(ID_KEY, value)

    def sibling_with_id(self, value: str) -> HTMLNode | None:
        return self.sibling_with_attribute(ID_KEY, value)

    def siblings_with_id(self, value: str) -> list[HTMLNode]:
        return self.siblings_with_attribute(ID_KEY, value)

    # Tag predicates

    def descendant_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> HTMLNode | None:
        """Return the first descendant element named ``tag``.

        With ``value``, the element's direct text must also satisfy ``match``;
        elements without a text child then never match.
        """
        return search(self, Predicate.tag(tag, value, match), Scope.DESCENDANT, first=True)

    def descendants_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> list[HTMLNode]:
        return search(self, Predicate.tag(tag, value, match), Scope.DESCENDANT)

    def child_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> HTMLNode | None:
        return search(self, Predicate.tag(tag, value, match), Scope.CHILD, first=True)

    def children_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> list[HTMLNode]:
        return search(self, Predicate.tag(tag, value, match), Scope.CHILD)

    def sibling_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> HTMLNode | None:
        return search(self, Predicate.tag(tag, value, match), Scope.SIBLING, first=True)

    def siblings_of_tag(self, tag: str, value: str | None = None, *, match: str = MatchMode.EQUALS) -> list[HTMLNode]:
        return search(self, Predicate.tag(tag, value, match), Scope.SIBLING)

    # ------------------------------------------------------------------
    # XPath

    def node_for_xpath(self, query: str) -> HTMLNode | None:
        """
        Return the first node selected by an XPath query.

        Queries starting with "./" or "//" use this node as context; any
        other expression is evaluated against the whole document.

        Raises:
            XPathError: If the query is malformed
        """
        nodes = evaluate(self, query, first=True)
        return nodes[0] if nodes else None

    def nodes_for_xpath(self, query: str) -> list[HTMLNode]:
        """Return every node selected by an XPath query, in document order.

        Raises:
            XPathError: If the query is malformed
        """
        return evaluate(self, query)

    def xpath(self, query: str) -> list[HTMLNode]:
        return self.nodes_for_xpath(query)

    def node_of_tag(self, tag: str, attribute: str | None = None) -> HTMLNode | None:
        """First descendant element named ``tag`` (carrying ``attribute``, if given), via XPath."""
        query = XPathTemplate.node_with(tag, attribute) if attribute else XPathTemplate.node(tag)
        return self.node_for_xpath(query)

    def nodes_of_tag(self, tag: str, attribute: str | None = None) -> list[HTMLNode]:
        query = XPathTemplate.node_with(tag, attribute) if attribute else XPathTemplate.node(tag)
        return self.nodes_for_xpath(query)

    def node_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> HTMLNode | None:
        return self.node_for_xpath(XPathTemplate.for_attribute(name, value, match))

    def nodes_with_attribute(
        self, name: str, value: str | None = None, *, match: str = MatchMode.EQUALS
    ) -> list[HTMLNode]:
        return self.nodes_for_xpath(XPathTemplate.for_attribute(name, value, match))

    def node_with_class(self, value: str) -> HTMLNode | None:
        return self.node_with_attribute(CLASS_KEY, value)

    def nodes_with_class(self, value: str) -> list[HTMLNode]:
        return self.nodes_with_attribute(CLASS_KEY, value)


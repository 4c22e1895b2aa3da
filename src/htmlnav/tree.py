"""Index-addressed node storage built from a parsed lxml document.

Every node of the parsed document (elements, text runs, comments, processing
instructions and attributes) gets one slot in a set of parallel lists. Slots
are numbered in document order, so comparing two indices is the same as
comparing two positions in the document.

Text is modelled the libxml2 way: the ``text`` and ``tail`` strings that lxml
hangs off elements become TEXT nodes in the child chain. Attributes are
ATTRIBUTE nodes reachable from their owner's attribute chain only, and are
numbered right after their owner.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any

from lxml import etree

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class NodeKind(enum.IntEnum):
    ELEMENT = 1
    ATTRIBUTE = 2
    TEXT = 3
    CDATA_SECTION = 4
    ENTITY_REF = 5
    ENTITY = 6
    PI = 7
    COMMENT = 8
    DOCUMENT = 9
    DOCUMENT_TYPE = 10
    DOCUMENT_FRAG = 11
    NOTATION = 12
    HTML_DOCUMENT = 13
    DTD = 14
    ELEMENT_DECL = 15
    ATTRIBUTE_DECL = 16
    ENTITY_DECL = 17
    NAMESPACE_DECL = 18
    XINCLUDE_START = 19
    XINCLUDE_END = 20


KIND_DISPLAY_NAMES: dict[NodeKind, str] = {
    NodeKind.ELEMENT: "Element",
    NodeKind.ATTRIBUTE: "Attribute",
    NodeKind.TEXT: "Text",
    NodeKind.CDATA_SECTION: "CData Section",
    NodeKind.ENTITY_REF: "Entity Ref",
    NodeKind.ENTITY: "Entity",
    NodeKind.PI: "Pi",
    NodeKind.COMMENT: "Comment",
    NodeKind.DOCUMENT: "Document",
    NodeKind.DOCUMENT_TYPE: "Document Type",
    NodeKind.DOCUMENT_FRAG: "Document Frag",
    NodeKind.NOTATION: "Notation",
    NodeKind.HTML_DOCUMENT: "HTML Document",
    NodeKind.DTD: "DTD",
    NodeKind.ELEMENT_DECL: "Element Declaration",
    NodeKind.ATTRIBUTE_DECL: "Attribute Declaration",
    NodeKind.ENTITY_DECL: "Entity Declaration",
    NodeKind.NAMESPACE_DECL: "Namespace Declaration",
    NodeKind.XINCLUDE_START: "Xinclude Start",
    NodeKind.XINCLUDE_END: "Xinclude End",
}

# Kinds whose text value is stored on the node itself rather than in children.
_LEAF_KINDS: frozenset[NodeKind] = frozenset(
    {NodeKind.TEXT, NodeKind.CDATA_SECTION, NodeKind.COMMENT, NodeKind.PI, NodeKind.ATTRIBUTE}
)


def _local_name(name: str) -> str:
    # lxml spells namespaced names as "{uri}local"
    if name.startswith("{"):
        return name.rpartition("}")[2]
    return name


def linked(start: int | None, links: list[int | None]) -> Iterator[int]:
    """Yield ``start`` and every index reachable by following ``links``."""
    current = start
    while current is not None:
        yield current
        current = links[current]


def compare_document_order(a: int, b: int) -> int:
    """Return -1, 0 or 1 as ``a`` precedes, equals or follows ``b``."""
    return (a > b) - (a < b)


class NodeTree:
    """Parallel-list storage for one parsed document.

    The lists are filled once by `build_tree` and never mutated afterwards.
    ``None`` marks a missing link.
    """

    __slots__ = (
        "_attribute_by_owner",
        "_index_by_element",
        "_tail_by_element",
        "_text_by_element",
        "content",
        "elements",
        "etree",
        "first_attribute",
        "first_child",
        "html",
        "kind",
        "last_child",
        "name",
        "next_sibling",
        "parent",
        "previous_sibling",
    )

    etree: Any
    html: bool
    kind: list[NodeKind]
    name: list[str | None]
    content: list[str | None]
    parent: list[int | None]
    first_child: list[int | None]
    last_child: list[int | None]
    next_sibling: list[int | None]
    previous_sibling: list[int | None]
    first_attribute: list[int | None]
    elements: list[Any]

    def __init__(self, etree_doc: Any, html: bool) -> None:
        self.etree = etree_doc
        self.html = html
        self.kind = []
        self.name = []
        self.content = []
        self.parent = []
        self.first_child = []
        self.last_child = []
        self.next_sibling = []
        self.previous_sibling = []
        self.first_attribute = []
        self.elements = []
        self._index_by_element: dict[Any, int] = {}
        self._text_by_element: dict[Any, int] = {}
        self._tail_by_element: dict[Any, int] = {}
        self._attribute_by_owner: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self.kind)

    # ------------------------------------------------------------------
    # Construction

    def _new_slot(
        self,
        kind: NodeKind,
        name: str | None,
        content: str | None,
        parent: int | None,
        element: Any = None,
    ) -> int:
        index = len(self.kind)
        self.kind.append(kind)
        self.name.append(name)
        self.content.append(content)
        self.parent.append(parent)
        self.first_child.append(None)
        self.last_child.append(None)
        self.next_sibling.append(None)
        self.previous_sibling.append(None)
        self.first_attribute.append(None)
        self.elements.append(element)
        return index

    def _append_child(
        self,
        kind: NodeKind,
        name: str | None,
        content: str | None,
        parent: int | None,
        element: Any = None,
    ) -> int:
        index = self._new_slot(kind, name, content, parent, element)
        if parent is not None:
            last = self.last_child[parent]
            if last is None:
                self.first_child[parent] = index
            else:
                self.next_sibling[last] = index
                self.previous_sibling[index] = last
            self.last_child[parent] = index
        return index

    def _append_attribute(self, owner: int, name: str, value: str) -> int:
        index = self._new_slot(NodeKind.ATTRIBUTE, name, value, owner)
        last = self._attribute_by_owner.get(owner)
        if last is None:
            self.first_attribute[owner] = index
        else:
            self.next_sibling[last] = index
            self.previous_sibling[index] = last
        self._attribute_by_owner[owner] = index
        return index

    def _append_element(self, element: Any, parent: int) -> int:
        tag = element.tag
        if tag is etree.Comment:
            return self._register(element, self._append_child(NodeKind.COMMENT, None, element.text, parent, element))
        if tag is etree.PI:
            index = self._append_child(NodeKind.PI, element.target, element.text, parent, element)
            return self._register(element, index)
        if tag is etree.Entity:
            index = self._append_child(NodeKind.ENTITY_REF, element.name, element.text, parent, element)
            return self._register(element, index)

        index = self._register(element, self._append_child(NodeKind.ELEMENT, _local_name(tag), None, parent, element))
        for attr_name, attr_value in element.attrib.items():
            self._append_attribute(index, _local_name(attr_name), attr_value)
        if element.text:
            self._text_by_element[element] = self._append_child(NodeKind.TEXT, None, element.text, index)
        return index

    def _register(self, element: Any, index: int) -> int:
        self._index_by_element[element] = index
        return index

    # ------------------------------------------------------------------
    # Lookups

    def attribute_indices(self, index: int) -> Iterator[int]:
        return linked(self.first_attribute[index], self.next_sibling)

    def child_indices(self, index: int) -> Iterator[int]:
        return linked(self.first_child[index], self.next_sibling)

    def direct_text(self, index: int) -> str | None:
        """The text value carried by a node's first child, or by the node itself for attributes."""
        if self.kind[index] == NodeKind.ATTRIBUTE:
            return self.content[index]
        child = self.first_child[index]
        if child is None or self.kind[child] not in (NodeKind.TEXT, NodeKind.CDATA_SECTION):
            return None
        return self.content[child]

    def text_content(self, index: int) -> str:
        """Concatenated text of a node and its descendants."""
        if self.kind[index] in _LEAF_KINDS:
            return self.content[index] or ""
        parts: list[str] = []
        stack = [self.first_child[index]]
        while stack:
            current = stack.pop()
            if current is None:
                continue
            stack.append(self.next_sibling[current])
            kind = self.kind[current]
            if kind in (NodeKind.TEXT, NodeKind.CDATA_SECTION):
                parts.append(self.content[current] or "")
            elif kind == NodeKind.ELEMENT:
                stack.append(self.first_child[current])
        return "".join(parts)

    def element_at(self, index: int) -> Any:
        return self.elements[index]

    def index_of_element(self, element: Any) -> int | None:
        return self._index_by_element.get(element)

    def index_of_result(self, item: Any) -> int | None:
        """Map one XPath node-set member back to a node index.

        Elements map directly. Text and attribute results arrive as lxml
        "smart strings" that remember the element they came from. Anything
        else (namespace tuples, plain strings) has no node and maps to None.
        """
        if isinstance(item, etree._Element):
            return self._index_by_element.get(item)
        getparent = getattr(item, "getparent", None)
        if getparent is None:
            return None
        owner = getparent()
        if owner is None:
            return None
        if getattr(item, "is_attribute", False):
            owner_index = self._index_by_element.get(owner)
            if owner_index is None:
                return None
            wanted = _local_name(item.attrname)
            for attr in self.attribute_indices(owner_index):
                if self.name[attr] == wanted:
                    return attr
            return None
        if getattr(item, "is_tail", False):
            return self._tail_by_element.get(owner)
        if getattr(item, "is_text", False):
            return self._text_by_element.get(owner)
        return None


def build_tree(etree_doc: Any, *, html: bool) -> NodeTree:
    """Flatten an lxml ``ElementTree`` into a `NodeTree`.

    Index 0 is always the document node. The walk uses an explicit stack so
    deeply nested documents (``huge_tree``) do not hit the recursion limit.
    """
    tree = NodeTree(etree_doc, html)
    document = tree._append_child(NodeKind.HTML_DOCUMENT if html else NodeKind.DOCUMENT, None, None, None)

    root = etree_doc.getroot()
    if root is None:
        return tree

    top_level = [*reversed(list(root.itersiblings(preceding=True))), root, *root.itersiblings()]
    # Entries are (element, parent index, is_tail). Whitespace between
    # top-level nodes is not part of the document.
    stack: list[tuple[Any, int, bool]] = [(element, document, False) for element in reversed(top_level)]
    while stack:
        element, parent, is_tail = stack.pop()
        if is_tail:
            tree._tail_by_element[element] = tree._append_child(NodeKind.TEXT, None, element.tail, parent)
            continue
        index = tree._append_element(element, parent)
        if element.tail and parent != document:
            stack.append((element, parent, True))
        if tree.kind[index] == NodeKind.ELEMENT:
            stack.extend((child, index, False) for child in reversed(element))

    logger.debug("Built node tree with %d nodes (html=%s)", len(tree), html)
    return tree

# XPath bridge for htmlnav
# Builds XPath expressions from the search vocabulary, evaluates them with
# lxml and maps the resulting node-set back to node handles.

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lxml import etree

from .search import MatchMode
from .tree import NodeKind

if TYPE_CHECKING:
    from .node import HTMLNode
    from .tree import NodeTree

logger = logging.getLogger(__name__)

DEFAULT_ERROR_CODE: int = 99999
DEFAULT_ERROR_MESSAGE: str = "Unknown Error"

# Expressions with these prefixes are evaluated with the origin node as
# context. Anything else is evaluated against the whole document.
RELATIVE_PREFIXES: tuple[str, ...] = ("//", "./")


class XPathError(ValueError):
    """Raised when the evaluator rejects an XPath expression."""

    code: int
    message: str
    expression: str

    def __init__(self, message: str = DEFAULT_ERROR_MESSAGE, code: int = DEFAULT_ERROR_CODE, expression: str = "") -> None:
        self.code = code
        self.message = message
        self.expression = expression
        super().__init__(f"{message} (code {code}) in {expression!r}" if expression else f"{message} (code {code})")

    @classmethod
    def from_lxml(cls, exc: etree.XPathError, expression: str) -> XPathError:
        """Build an error from the log lxml captured for one evaluation."""
        entry = None
        for candidate in getattr(exc, "error_log", None) or ():
            entry = candidate
        if entry is None:
            return cls(str(exc) or DEFAULT_ERROR_MESSAGE, DEFAULT_ERROR_CODE, expression)
        message = (entry.message or str(exc) or DEFAULT_ERROR_MESSAGE).strip()
        return cls(message, int(entry.type), expression)


def xpath_literal(value: str) -> str:
    """Quote ``value`` as an XPath 1.0 string literal."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    # XPath 1.0 has no escapes; splice the single quotes back in with concat().
    pieces = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{piece}'" for piece in pieces) + ")"


class XPathTemplate:
    """Expression builders for the fixed query shapes.

    Every template searches the descendants of the context node, so each one
    selects the same nodes as the corresponding recursive descendant search.
    """

    @staticmethod
    def node(tag: str) -> str:
        return f"./descendant::{tag}"

    @staticmethod
    def node_with(tag: str, attribute: str) -> str:
        return f"./descendant::{tag}[@{attribute}]"

    @staticmethod
    def attribute(name: str) -> str:
        return f"./descendant::*[@{name}]"

    @staticmethod
    def attribute_is_equal(name: str, value: str) -> str:
        return f"./descendant::*[@{name} = {xpath_literal(value)}]"

    @staticmethod
    def attribute_begins_with(name: str, value: str) -> str:
        return f"./descendant::*[@{name} and starts-with(@{name}, {xpath_literal(value)})]"

    @staticmethod
    def attribute_ends_with(name: str, value: str) -> str:
        literal = xpath_literal(value)
        return (
            f"./descendant::*[@{name} and "
            f"substring(@{name}, string-length(@{name}) - string-length({literal}) + 1) = {literal}]"
        )

    @staticmethod
    def attribute_contains(name: str, value: str) -> str:
        return f"./descendant::*[@{name} and contains(@{name}, {xpath_literal(value)})]"

    @classmethod
    def for_attribute(cls, name: str, value: str | None = None, match: str = MatchMode.EQUALS) -> str:
        """Pick the template for an attribute predicate."""
        if value is None or match == MatchMode.PRESENCE:
            return cls.attribute(name)
        if match == MatchMode.EQUALS:
            return cls.attribute_is_equal(name, value)
        if match == MatchMode.CONTAINS:
            return cls.attribute_contains(name, value)
        if match == MatchMode.BEGINS_WITH:
            return cls.attribute_begins_with(name, value)
        if match == MatchMode.ENDS_WITH:
            return cls.attribute_ends_with(name, value)
        raise ValueError(f"Unknown match mode: {match!r}")


def _anchor_path(tree: NodeTree, index: int) -> str:
    """Relative path from the owning element to a text or attribute node."""
    owner = tree.parent[index]
    if tree.kind[index] == NodeKind.ATTRIBUTE:
        name = tree.name[index] or ""
        position = 1 + sum(1 for attr in tree.attribute_indices(owner) if attr < index and tree.name[attr] == name)
        return f"@*[local-name() = {xpath_literal(name)}][{position}]"
    position = 1 + sum(
        1
        for child in tree.child_indices(owner)
        if child < index and tree.kind[child] in (NodeKind.TEXT, NodeKind.CDATA_SECTION)
    )
    return f"text()[{position}]"


def _context_for(node: HTMLNode, expression: str) -> tuple[Any, str]:
    """The lxml context and the query to run for a relative expression."""
    tree = node.tree
    index = node.index
    if tree.kind[index] in (NodeKind.DOCUMENT, NodeKind.HTML_DOCUMENT):
        if expression.startswith("./"):
            # lxml evaluates document-level queries against the root element;
            # anchoring at "/" keeps the root itself a candidate.
            return tree.etree, expression[1:]
        return tree.etree, expression

    element = tree.element_at(index)
    if element is not None:
        return element, expression

    # Text and attribute nodes have no lxml object of their own: evaluate
    # from the owning element, stepping back onto the node first.
    owner = tree.parent[index]
    element = tree.element_at(owner) if owner is not None else None
    if element is None:
        raise XPathError("Node cannot be used as an XPath context", expression=expression)
    if expression.startswith("./"):
        return element, _anchor_path(tree, index) + expression[1:]
    return element, expression


def evaluate(node: HTMLNode, expression: str, *, first: bool = False) -> list[HTMLNode]:
    """
    Evaluate an XPath expression and return the selected nodes.

    Args:
        node: The origin node, used as context for "./" and "//" expressions
        expression: The XPath expression
        first: Return at most the first node in document order

    Returns:
        The selected nodes in document order. Expressions that evaluate to
        a number, string or boolean select no nodes.

    Raises:
        XPathError: If the expression is malformed or cannot be evaluated
    """
    tree = node.tree
    if expression.startswith(RELATIVE_PREFIXES):
        context, query = _context_for(node, expression)
    else:
        context, query = tree.etree, expression

    # lxml records evaluator errors in a log owned by this call, so no
    # state is shared between concurrent evaluations.
    try:
        result = context.xpath(query)
    except etree.XPathError as exc:
        error = XPathError.from_lxml(exc, expression)
        logger.debug("XPath evaluation failed: %s", error)
        raise error from exc

    if not isinstance(result, list):
        logger.debug("XPath %r returned a %s, not a node-set", expression, type(result).__name__)
        return []

    indices: set[int] = set()
    for item in result:
        index = tree.index_of_result(item)
        if index is None:
            logger.debug("Dropping XPath result without a node: %r", item)
            continue
        indices.add(index)

    ordered = sorted(indices)
    if first:
        ordered = ordered[:1]
    logger.debug("XPath %r selected %d node(s)", expression, len(ordered))
    return [node.wrap(index) for index in ordered]

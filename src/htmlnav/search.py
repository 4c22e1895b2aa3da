# Predicate matching and scoped traversal for htmlnav
# One depth-first walker serves every scope, match mode and multiplicity.

from __future__ import annotations

from typing import TYPE_CHECKING, overload

from .tree import NodeKind, linked

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Literal

    from .node import HTMLNode
    from .tree import NodeTree


class MatchMode:
    EQUALS: str = "equals"  # whole value
    CONTAINS: str = "contains"  # substring
    BEGINS_WITH: str = "begins_with"  # prefix
    ENDS_WITH: str = "ends_with"  # suffix
    PRESENCE: str = "presence"  # value ignored

    VALUE_MODES: frozenset[str] = frozenset({EQUALS, CONTAINS, BEGINS_WITH, ENDS_WITH})
    ALL: frozenset[str] = VALUE_MODES | {PRESENCE}


class Scope:
    CHILD: str = "child"
    SIBLING: str = "sibling"
    DESCENDANT: str = "descendant"

    ALL: frozenset[str] = frozenset({CHILD, SIBLING, DESCENDANT})


def matches_value(actual: str | None, mode: str, expected: str | None) -> bool:
    """Compare a node string against a predicate value.

    Comparison is case-sensitive and works on the raw string, no
    normalization. ``None`` (no value present) never matches.
    """
    if actual is None:
        return False

    if mode == MatchMode.PRESENCE:
        return True

    expected = expected or ""

    if mode == MatchMode.EQUALS:
        return actual == expected

    if mode == MatchMode.CONTAINS:
        return expected in actual

    if mode == MatchMode.BEGINS_WITH:
        return actual.startswith(expected)

    if mode == MatchMode.ENDS_WITH:
        return actual.endswith(expected)

    raise ValueError(f"Unknown match mode: {mode!r}")


class Predicate:
    """A tag or attribute condition with a match mode."""

    __slots__ = ("mode", "name", "target", "value")

    TARGET_ATTRIBUTE: str = "attribute"
    TARGET_TAG: str = "tag"

    target: str
    name: str
    mode: str
    value: str | None

    def __init__(self, target: str, name: str, mode: str = MatchMode.PRESENCE, value: str | None = None) -> None:
        if target not in (self.TARGET_ATTRIBUTE, self.TARGET_TAG):
            raise ValueError(f"Unknown predicate target: {target!r}")
        if mode not in MatchMode.ALL:
            raise ValueError(f"Unknown match mode: {mode!r}")
        if mode != MatchMode.PRESENCE and value is None:
            raise ValueError(f"Match mode {mode!r} needs a value")
        self.target = target
        self.name = name
        self.mode = mode
        self.value = value if mode != MatchMode.PRESENCE else None

    @classmethod
    def attribute(cls, name: str, value: str | None = None, match: str = MatchMode.EQUALS) -> Predicate:
        """Attribute ``name`` whose value satisfies ``match``; presence only when ``value`` is None."""
        if value is None:
            return cls(cls.TARGET_ATTRIBUTE, name)
        return cls(cls.TARGET_ATTRIBUTE, name, match, value)

    @classmethod
    def tag(cls, name: str, value: str | None = None, match: str = MatchMode.EQUALS) -> Predicate:
        """Element ``name`` whose direct text satisfies ``match``; tag only when ``value`` is None."""
        if value is None:
            return cls(cls.TARGET_TAG, name)
        return cls(cls.TARGET_TAG, name, match, value)

    def __repr__(self) -> str:
        parts = [f"Predicate({self.target!r}, {self.name!r}"]
        if self.mode != MatchMode.PRESENCE:
            parts.append(f", {self.mode!r}, {self.value!r}")
        parts.append(")")
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Predicate):
            return NotImplemented
        return (self.target, self.name, self.mode, self.value) == (other.target, other.name, other.mode, other.value)

    def __hash__(self) -> int:
        return hash((self.target, self.name, self.mode, self.value))

    def matches(self, tree: NodeTree, index: int) -> bool:
        if self.target == self.TARGET_TAG:
            if tree.kind[index] != NodeKind.ELEMENT or tree.name[index] != self.name:
                return False
            if self.mode == MatchMode.PRESENCE:
                return True
            # A node without a text child never matches a tag+value predicate.
            return matches_value(tree.direct_text(index), self.mode, self.value)

        # The first qualifying attribute decides; duplicates are tolerated.
        return any(
            tree.name[attr] == self.name and matches_value(tree.content[attr], self.mode, self.value)
            for attr in tree.attribute_indices(index)
        )


def preorder(tree: NodeTree, start: int | None, recursive: bool) -> Iterator[int]:
    """Walk the sibling chain beginning at ``start``, descending into subtrees when ``recursive``."""
    if not recursive:
        yield from linked(start, tree.next_sibling)
        return

    stack: list[int] = [] if start is None else [start]
    while stack:
        current = stack.pop()
        yield current
        sibling = tree.next_sibling[current]
        if sibling is not None:
            stack.append(sibling)
        child = tree.first_child[current]
        if child is not None:
            stack.append(child)


def iter_matches(
    tree: NodeTree,
    origin: int,
    predicate: Predicate,
    scope: str = Scope.DESCENDANT,
    recursive: bool = True,
) -> Iterator[int]:
    """Lazily yield indices of nodes matching ``predicate`` in document order.

    Child and sibling scopes only ever look at one level. Sibling scope walks
    forward from the node after ``origin``; earlier siblings are never visited.
    """
    if scope == Scope.SIBLING:
        start = tree.next_sibling[origin]
        recursive = False
    elif scope == Scope.CHILD:
        start = tree.first_child[origin]
        recursive = False
    elif scope == Scope.DESCENDANT:
        start = tree.first_child[origin]
    else:
        raise ValueError(f"Unknown search scope: {scope!r}")

    return (index for index in preorder(tree, start, recursive) if predicate.matches(tree, index))


@overload
def search(
    node: HTMLNode, predicate: Predicate, scope: str = ..., *, recursive: bool = ..., first: Literal[True]
) -> HTMLNode | None: ...


@overload
def search(
    node: HTMLNode, predicate: Predicate, scope: str = ..., *, recursive: bool = ..., first: Literal[False] = ...
) -> list[HTMLNode]: ...


def search(
    node: HTMLNode,
    predicate: Predicate,
    scope: str = Scope.DESCENDANT,
    *,
    recursive: bool = True,
    first: bool = False,
) -> HTMLNode | None | list[HTMLNode]:
    """
    Search around ``node`` for nodes matching ``predicate``.

    Args:
        node: The node the search starts from (never itself a candidate)
        predicate: The tag or attribute condition
        scope: One of `Scope.CHILD`, `Scope.SIBLING` or `Scope.DESCENDANT`
        recursive: For descendant scope, walk the whole subtree instead of
            the immediate children only
        first: Stop at the first match and return it (or None)

    Returns:
        The first matching node, or every matching node in document order
    """
    matches = iter_matches(node.tree, node.index, predicate, scope, recursive)
    if first:
        index = next(matches, None)
        return None if index is None else node.wrap(index)
    return [node.wrap(index) for index in matches]

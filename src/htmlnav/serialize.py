"""Markup dumps for single nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from .tree import NodeKind

if TYPE_CHECKING:
    from .tree import NodeTree


def _escape_text(text: str | None) -> str:
    if not text:
        return ""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr_value(value: str | None) -> str:
    if value is None:
        return ""
    return str(value).replace("&", "&amp;").replace('"', "&quot;")


def to_html(tree: NodeTree, index: int, encoding: str | None = None) -> str:
    """Serialize the node at ``index`` and its subtree.

    Element-like nodes are dumped by lxml, without the trailing text lxml
    keeps on the element. When ``encoding`` is given the markup is produced
    in that encoding first, so characters it cannot represent come out as
    character references.
    """
    kind = tree.kind[index]

    if kind in (NodeKind.TEXT, NodeKind.CDATA_SECTION):
        return _escape_text(tree.content[index])

    if kind == NodeKind.ATTRIBUTE:
        return f' {tree.name[index]}="{_escape_attr_value(tree.content[index])}"'

    method = "html" if tree.html else "xml"
    target = tree.etree if kind in (NodeKind.DOCUMENT, NodeKind.HTML_DOCUMENT) else tree.element_at(index)
    if target is None:
        return ""

    if target is tree.etree:
        markup = etree.tostring(target, method=method, encoding="unicode")
    else:
        markup = etree.tostring(target, method=method, encoding="unicode", with_tail=False)

    if encoding is None:
        return markup
    # Encoded with Python codecs; no XML declaration is added.
    return markup.encode(encoding, "xmlcharrefreplace").decode(encoding)

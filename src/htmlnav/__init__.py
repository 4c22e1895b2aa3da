from .document import Document, DocumentError, HTMLDocument, ParseOptions, StrictModeError, XMLDocument
from .errors import ParseError
from .node import HTMLNode
from .search import MatchMode, Predicate, Scope, search
from .tree import NodeKind
from .xpath import XPathError, XPathTemplate

__all__ = [
    "Document",
    "DocumentError",
    "HTMLDocument",
    "HTMLNode",
    "MatchMode",
    "NodeKind",
    "ParseError",
    "ParseOptions",
    "Predicate",
    "Scope",
    "StrictModeError",
    "XMLDocument",
    "XPathError",
    "XPathTemplate",
    "search",
]

#!/usr/bin/env python3
"""Command-line interface for htmlnav."""

from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, NoReturn

from .document import DocumentError, HTMLDocument, XMLDocument
from .node import CLASS_KEY, ID_KEY
from .search import MatchMode, Predicate, Scope
from .xpath import XPathError

if TYPE_CHECKING:
    from .document import Document
    from .node import HTMLNode

EXIT_NO_MATCH = 1
EXIT_BAD_XPATH = 2
EXIT_BAD_DOCUMENT = 3


def _get_version() -> str:
    try:
        return version("htmlnav")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="htmlnav",
        description="Parse HTML or XML and print the nodes selected by a search or an XPath query.",
        epilog=(
            "Examples:\n"
            "  htmlnav page.html --tag title --format value\n"
            "  htmlnav page.html --attribute href --value https:// --match begins_with\n"
            "  htmlnav page.html --class price --first --format text\n"
            "  curl -s https://example.com | htmlnav - --xpath '//a/@href' --format value\n"
            "  htmlnav feed.xml --xml --tag item --scope child\n"
            "\n"
            "If you don't have the 'htmlnav' command available, use:\n"
            "  python -m htmlnav ...\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "path",
        nargs="?",
        help="HTML or XML file to parse, or '-' to read from stdin",
    )
    parser.add_argument(
        "--xml",
        action="store_true",
        help="Parse the input as XML instead of HTML",
    )
    parser.add_argument(
        "--encoding",
        help="Character encoding of the input (default: detected by the parser)",
    )

    query = parser.add_mutually_exclusive_group()
    query.add_argument("--xpath", help="XPath expression selecting the nodes")
    query.add_argument("--tag", help="Select elements with this tag name")
    query.add_argument("--attribute", help="Select elements carrying this attribute")
    query.add_argument("--class", dest="class_", metavar="CLASS", help="Select elements whose class attribute equals CLASS")
    query.add_argument("--id", help="Select elements whose id attribute equals ID")

    parser.add_argument(
        "--value",
        help="With --attribute or --tag: the value the attribute or the element's text must match",
    )
    parser.add_argument(
        "--match",
        choices=sorted(MatchMode.VALUE_MODES),
        default=MatchMode.EQUALS,
        help="How --value is compared (default: equals)",
    )
    parser.add_argument(
        "--scope",
        choices=[Scope.DESCENDANT, Scope.CHILD],
        default=Scope.DESCENDANT,
        help="Search the whole subtree of the root element or its children only (default: descendant)",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Only output the first matching node",
    )
    parser.add_argument(
        "--format",
        choices=["html", "text", "value"],
        default="html",
        help="Output format (default: html)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log parsing and query details to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"htmlnav {_get_version()}",
    )

    args = parser.parse_args(argv)

    if not args.path:
        parser.print_help(sys.stderr)
        raise SystemExit(EXIT_NO_MATCH)

    if args.value is not None and not (args.attribute or args.tag):
        parser.error("--value requires --attribute or --tag")

    return args


def _load(args: argparse.Namespace) -> Document:
    cls = XMLDocument if args.xml else HTMLDocument
    if args.path == "-":
        stream = getattr(sys.stdin, "buffer", sys.stdin)
        return cls.from_file(stream, encoding=args.encoding)
    return cls.from_path(args.path, encoding=args.encoding)


def _predicate(args: argparse.Namespace) -> Predicate | None:
    if args.tag:
        return Predicate.tag(args.tag, args.value, args.match)
    if args.attribute:
        return Predicate.attribute(args.attribute, args.value, args.match)
    if args.class_:
        return Predicate.attribute(CLASS_KEY, args.class_)
    if args.id:
        return Predicate.attribute(ID_KEY, args.id)
    return None


def _select(doc: Document, args: argparse.Namespace) -> list[HTMLNode]:
    if args.xpath:
        return doc.nodes_for_xpath(args.xpath)
    predicate = _predicate(args)
    if predicate is None:
        return [doc.root]
    return doc.root.search(predicate, args.scope)


def _render(node: HTMLNode, fmt: str) -> str:
    if fmt == "html":
        return node.html_string
    if fmt == "text":
        if node.is_element_node or node.is_document_node:
            return node.to_text()
        return node.text_content
    value = node.string_value
    return value if value is not None else node.text_content


def main(argv: list[str] | None = None) -> NoReturn | None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        doc = _load(args)
    except DocumentError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(EXIT_BAD_DOCUMENT) from e

    try:
        nodes = _select(doc, args)
    except XPathError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(EXIT_BAD_XPATH) from e

    if not nodes:
        raise SystemExit(EXIT_NO_MATCH)

    if args.first:
        nodes = [nodes[0]]

    outputs = [_render(node, args.format) for node in nodes]
    sys.stdout.write("\n".join(outputs))
    sys.stdout.write("\n")
    return None


if __name__ == "__main__":
    main()

"""
Tree accessor: parse, query, mutate and serialize markup

Thin layer over BeautifulSoup (html.parser builder) and soupsieve that gives
the passes one vocabulary for the tree operations they need, and turns
collaborator exceptions into htmlua errors.

The html.parser builder keeps the document as written (no implied
<html>/<body>) and honours self-closing custom tags such as
<include path="nav.html" />.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Dict

from bs4 import BeautifulSoup, NavigableString, Tag, PageElement
from bs4.builder import ParserRejectedMarkup
from soupsieve import SelectorSyntaxError

from .errors import ComponentLoadError, ParseError
from .log import LOG

PARSER_BACKEND = "html.parser"
DOCTYPE_LINE = "<!doctype html>"


def document_parse(text: str) -> BeautifulSoup:
    """
    Parse a complete markup document

    Args:
        text: Raw markup

    Returns:
        Mutable tree

    Raises:
        ParseError: If the parser rejects the markup
    """
    try:
        return BeautifulSoup(text, PARSER_BACKEND)
    except ParserRejectedMarkup as e:
        raise ParseError(f"Malformed markup: {e}") from e


def fragment_parse(text: str) -> BeautifulSoup:
    """
    Parse a markup fragment (e.g. rendered markdown) whose top-level nodes
    are spliced into another tree.
    """
    try:
        return BeautifulSoup(text, PARSER_BACKEND)
    except ParserRejectedMarkup as e:
        raise ParseError(f"Malformed markup fragment: {e}") from e


def document_load(path: Path) -> BeautifulSoup:
    """
    Read and parse a page or component file

    A file starting with <!DOCTYPE html> is treated as a whole document,
    anything else as a fragment. Both parse to the same tree type; the
    distinction is only logged.

    Args:
        path: File to load

    Returns:
        Parsed tree

    Raises:
        ComponentLoadError: If the file is missing or unreadable
        ParseError: If the file is not UTF-8 or the markup is rejected
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ComponentLoadError(f"Failed to read {path}: {e}") from e

    first_line = text.lstrip().split("\n", 1)[0].strip().lower()
    if first_line == DOCTYPE_LINE:
        LOG(f"Loaded document {path} ({len(text)} chars)", level=2)
        return document_parse(text)
    LOG(f"Loaded fragment {path} ({len(text)} chars)", level=2)
    return fragment_parse(text)


def nodes_select(tree: Tag, selector: str) -> List[Tag]:
    """
    Query the tree with a CSS selector

    The result is a snapshot list in document (pre-order) order, safe to
    iterate while the tree is mutated.

    Raises:
        ParseError: If the selector is invalid
    """
    try:
        return list(tree.select(selector))
    except SelectorSyntaxError as e:
        raise ParseError(f"Invalid selector '{selector}': {e}") from e


def nodes_insertBefore(anchor: PageElement, nodes: Iterable[PageElement]) -> None:
    """
    Insert nodes immediately before anchor, keeping their relative order

    Nodes that currently live in another tree are moved, not copied.
    """
    for node in list(nodes):
        anchor.insert_before(node)


def node_insertAfter(anchor: PageElement, node: PageElement) -> None:
    """Insert node immediately after anchor"""
    anchor.insert_after(node)


def node_detach(node: PageElement) -> PageElement:
    """Remove node (and its subtree) from its parent and return it"""
    return node.extract()


def node_isAttached(node: PageElement, tree: Tag) -> bool:
    """
    Check whether node is still reachable from tree

    Query results are snapshots; a node detached by an earlier mutation
    (alone or as part of a detached subtree) is no longer attached.
    """
    return any(parent is tree for parent in node.parents)


def text_contents(node: PageElement) -> str:
    """Concatenated text of node and all its descendants"""
    if isinstance(node, NavigableString):
        return str(node)
    return node.get_text()


def markup_contents(node: Tag) -> str:
    """
    Inner markup of node as written, entities decoded

    Tags the parser found inside node come back as tags, so source code
    holding markup in string literals is passed on unchanged.
    """
    return node.decode_contents(formatter=None)


def element_new(
    tree: BeautifulSoup,
    name: str,
    attrs: Optional[Dict[str, str]] = None,
    text: Optional[str] = None,
) -> Tag:
    """
    Create a detached element owned by tree

    Args:
        tree: Tree used as the element factory
        name: Tag name
        attrs: Attribute mapping
        text: Optional text content
    """
    element = tree.new_tag(name, attrs=attrs or {})
    if text is not None:
        element.append(NavigableString(text))
    return element


def text_new(text: str) -> NavigableString:
    """Create a detached text node"""
    return NavigableString(text)


def document_serialize(tree: Tag) -> str:
    """Serialize the tree back to markup text"""
    return tree.decode()

"""Reduce rendered markup to the elements that can carry product text.

Passes run in a fixed order and each assumes the previous ones ran:

1. drop subtrees that never hold extractable product information,
2. drop comment nodes,
3. strip every attribute except ``class``,
4. drop elements left empty, bottom-up, keeping line breaks and rules.

Running :func:`reduce_document` on an already reduced tree is a no-op.
"""

from __future__ import annotations

import logging
import re
from typing import List, Tuple, Union

from bs4 import BeautifulSoup, Comment, ParserRejectedMarkup, Tag

from .errors import ParseFatal, ParseRecoverable
from .utils import collapse_whitespace

logger = logging.getLogger("product_distill")

NOISE_TAGS = (
    "script",
    "style",
    "noscript",
    "iframe",
    "img",
    "video",
    "audio",
    "svg",
    "canvas",
    "map",
    "figure",
    "input",
    "textarea",
    "select",
    "button",
    "form",
    "footer",
    "nav",
    "aside",
)
GROUPING_ATTRIBUTE = "class"
PRESERVED_EMPTY_TAGS = frozenset({"br", "hr"})

_STYLE_BLOCK_PATTERN = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.I | re.S)
_STYLESHEET_LINK_PATTERN = re.compile(
    r"<link\b[^>]*\brel\s*=\s*[\"']?stylesheet[^>]*>", re.I
)


def _has_stylesheets(html: str) -> bool:
    return bool(
        _STYLE_BLOCK_PATTERN.search(html) or _STYLESHEET_LINK_PATTERN.search(html)
    )


def _strip_stylesheets(html: str) -> str:
    html = _STYLE_BLOCK_PATTERN.sub("", html)
    return _STYLESHEET_LINK_PATTERN.sub("", html)


def _parse(html: str, stylesheets: bool) -> BeautifulSoup:
    markup = html if stylesheets else _strip_stylesheets(html)
    try:
        return BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as exc:
        if stylesheets and _has_stylesheets(html):
            raise ParseRecoverable(str(exc)) from exc
        raise ParseFatal(str(exc)) from exc


def parse_document(html: str) -> BeautifulSoup:
    """Parse rendered HTML, retrying without stylesheets if they break parsing."""
    try:
        return _parse(html, stylesheets=True)
    except ParseRecoverable as exc:
        logger.warning(
            "Stylesheet parsing error encountered, continuing without styles: %s",
            exc,
        )
        return _parse(html, stylesheets=False)


def _content_root(document: BeautifulSoup) -> Tag:
    return document.body or document


def _remove_noise(document: BeautifulSoup) -> None:
    for tag in document.find_all(list(NOISE_TAGS)):
        # Nested noise tags are already gone with their ancestor.
        if tag.decomposed:
            continue
        tag.decompose()


def _remove_comments(root: Tag) -> None:
    stack: List[Tag] = [root]
    while stack:
        node = stack.pop()
        for child in reversed(list(node.contents)):
            if isinstance(child, Comment):
                child.extract()
            elif isinstance(child, Tag):
                stack.append(child)


def _strip_attributes(document: BeautifulSoup) -> None:
    for tag in document.find_all(True):
        if not tag.attrs:
            continue
        tag.attrs = {
            name: value
            for name, value in tag.attrs.items()
            if name == GROUPING_ATTRIBUTE
        }


def _is_empty(tag: Tag) -> bool:
    return not tag.decode_contents().strip() and tag.name not in PRESERVED_EMPTY_TAGS


def _remove_empty_elements(root: Tag) -> None:
    # Post-order: a node is inspected only after all of its children were,
    # and siblings are settled last-to-first.
    stack: List[Tuple[Tag, bool]] = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        if children_done:
            if node is not root and _is_empty(node):
                node.extract()
            continue
        stack.append((node, True))
        for child in node.contents:
            if isinstance(child, Tag):
                stack.append((child, False))


def reduce_document(document: BeautifulSoup) -> BeautifulSoup:
    """Apply every reduction pass to ``document`` in place and return it."""
    _remove_noise(document)
    _remove_comments(document)
    _strip_attributes(document)
    _remove_empty_elements(_content_root(document))
    return document


def extract_plain_text(document: Union[BeautifulSoup, Tag]) -> str:
    """Return the body's text content with whitespace collapsed."""
    root = document.body if isinstance(document, BeautifulSoup) else document
    if root is None:
        root = document
    return collapse_whitespace(root.get_text())


def clean_content(html: str) -> str:
    """Parse, reduce and flatten rendered HTML into a single line of text."""
    document = reduce_document(parse_document(html))
    cleaned_text = extract_plain_text(document)
    logger.debug("Cleaned text length: %d", len(cleaned_text))
    return cleaned_text

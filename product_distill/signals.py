"""Proximity extraction of rating text such as "45W, 12V, 3.75A".

A text node is a hit when a domain term and a numeric literal sit within
``PROXIMITY_WINDOW`` characters of each other. The text of the element
``CONTEXT_ANCESTOR_LEVELS`` above the hit's parent is then captured as a
context block, provided the same joint test also passes on that larger block.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Set, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .config import POWER_TERMS
from .models import EvidenceBlock
from .utils import collapse_whitespace

logger = logging.getLogger("product_distill")

PROXIMITY_WINDOW = 30
CONTEXT_ANCESTOR_LEVELS = 2
NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")
DEFAULT_POWER_TERMS = POWER_TERMS


def normalize_terms(terms: Iterable[str]) -> Tuple[str, ...]:
    """Lower-case and dedupe terms, longest first so the origin token is stable."""
    unique = {term.strip().lower() for term in terms if term and term.strip()}
    return tuple(sorted(unique, key=lambda term: (-len(term), term)))


def has_number_near_term(text: str, term: str) -> bool:
    """Check for a numeric literal around the first occurrence of ``term``."""
    index = text.find(term)
    if index == -1:
        return False
    start = max(0, index - PROXIMITY_WINDOW)
    end = min(len(text), index + len(term) + PROXIMITY_WINDOW)
    return NUMBER_PATTERN.search(text[start:end]) is not None


def find_signal_term(text: str, terms: Iterable[str]) -> Optional[str]:
    """Return the first normalized term that passes the joint test, if any.

    ``terms`` must already be normalized (see :func:`normalize_terms`).
    """
    lowered = text.lower()
    for term in terms:
        if has_number_near_term(lowered, term):
            return term
    return None


def _nth_ancestor(element: Optional[Tag], levels: int) -> Optional[Tag]:
    node = element
    for _ in range(levels):
        if node is None:
            return None
        node = node.parent
        # The BeautifulSoup object stands in for the document, not an element.
        if node is None or isinstance(node, BeautifulSoup):
            return None
    return node


def _text_nodes(root: Tag) -> Iterable[NavigableString]:
    for node in root.descendants:
        if isinstance(node, NavigableString) and not isinstance(
            node, PreformattedString
        ):
            yield node


def extract_signals(
    document: BeautifulSoup,
    terms: Iterable[str] = DEFAULT_POWER_TERMS,
) -> List[EvidenceBlock]:
    """Collect deduplicated context blocks around term/number co-occurrences.

    An empty list means no signal was found; it is not an error.
    """
    normalized = normalize_terms(terms)
    if not normalized:
        return []

    root = document.body or document
    blocks: List[EvidenceBlock] = []
    seen: Set[str] = set()

    for node in _text_nodes(root):
        term = find_signal_term(str(node), normalized)
        if term is None:
            continue
        ancestor = _nth_ancestor(node.parent, CONTEXT_ANCESTOR_LEVELS)
        if ancestor is None:
            continue
        context_text = collapse_whitespace(ancestor.get_text())
        confirmed = find_signal_term(context_text, normalized)
        if confirmed is None or context_text in seen:
            continue
        seen.add(context_text)
        blocks.append(
            EvidenceBlock(text=context_text, origin_token=term, element=ancestor)
        )

    logger.debug("Found %d unique signal block(s)", len(blocks))
    return blocks


def evidence_text(blocks: Iterable[EvidenceBlock]) -> str:
    """Join block texts into a prompt-ready evidence document."""
    return "\n".join(block.text for block in blocks)

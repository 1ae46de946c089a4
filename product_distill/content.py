"""Per-page distillation: one rendered page in, one SourceResult out."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup
from readability import Document

from .images import best_image
from .models import EvidenceBlock, RenderedPage, SourceResult
from .reducer import extract_plain_text, parse_document, reduce_document
from .signals import evidence_text, extract_signals
from .utils import collapse_whitespace, truncate

logger = logging.getLogger("product_distill")


def page_title(html: str, soup: BeautifulSoup) -> str:
    """Short page title from readability, falling back to ``<title>``."""
    title = ""
    try:
        title = Document(html).short_title()
    except Exception as err:  # noqa: BLE001 - readability rejects odd markup
        logger.debug("Readability could not parse title: %s", err)
    if not title and soup.title and soup.title.string:
        title = soup.title.string
    return collapse_whitespace(title or "")


def process_page(
    page: RenderedPage,
    target_name: Optional[str] = None,
    signal_terms: Optional[Iterable[str]] = None,
    max_text_chars: Optional[int] = None,
) -> SourceResult:
    """Rank images, reduce the markup and extract the page's evidence text.

    With ``signal_terms`` the text is the joined proximity context blocks,
    otherwise the whole reduced body text. Images are ranked on the unreduced
    tree, since reduction removes them.
    """
    soup = parse_document(page.html)
    title = page_title(page.html, soup)
    image = best_image(soup, target_name, page.final_url) if target_name else None

    reduce_document(soup)
    blocks: List[EvidenceBlock] = []
    if signal_terms is not None:
        blocks = extract_signals(soup, signal_terms)
        text = evidence_text(blocks)
    else:
        text = extract_plain_text(soup)
    logger.debug("Cleaned text length for %s: %d", page.final_url, len(text))

    return SourceResult(
        url=page.final_url,
        cleaned_text=truncate(text, max_text_chars),
        image=image,
        title=title,
        blocks=blocks,
    )

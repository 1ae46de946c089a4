"""Image candidate ranking and reachability utilities."""

from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from .models import ImageCandidate
from .utils import word_set

logger = logging.getLogger("product_distill")

MIN_IMAGE_SIDE = 200
# Attributes set by the renderer from the live page before serialization.
RENDERED_SRC_ATTR = "data-rendered-src"
RENDERED_WIDTH_ATTR = "data-rendered-width"
RENDERED_HEIGHT_ATTR = "data-rendered-height"
SOURCE_ATTRIBUTES = (
    "data-zoom-image",
    "data-large-image",
    RENDERED_SRC_ATTR,
    "src",
)
REJECTED_URL_MARKERS = ("data:image", "blank.gif", "placeholder", "logo")

_DIMENSION_PATTERN = re.compile(r"^\s*(\d+)")


def name_similarity(target_name: str, alt_text: str) -> float:
    """Shared words over the size of the larger word set; 0 if either is empty."""
    target_words = word_set(target_name)
    alt_words = word_set(alt_text)
    if not target_words or not alt_words:
        return 0.0
    shared = target_words & alt_words
    return len(shared) / max(len(target_words), len(alt_words))


def _attribute_text(img: Tag, name: str) -> str:
    value = img.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def resolve_image_source(img: Tag) -> str:
    """Pick the best available source, preferring high-resolution hints."""
    for name in SOURCE_ATTRIBUTES:
        value = _attribute_text(img, name)
        if value:
            return value
    return ""


def parse_dimension(value: Optional[str]) -> int:
    if not value:
        return 0
    match = _DIMENSION_PATTERN.match(str(value))
    return int(match.group(1)) if match else 0


def _dimension(img: Tag, rendered_attr: str, fallback_attr: str) -> int:
    return parse_dimension(_attribute_text(img, rendered_attr)) or parse_dimension(
        _attribute_text(img, fallback_attr)
    )


def is_rejected_url(url: str) -> bool:
    """True for empty, embedded, placeholder, blank or logo image URLs."""
    if not url:
        return True
    lowered = url.lower()
    if lowered.startswith("data:"):
        return True
    return any(marker in lowered for marker in REJECTED_URL_MARKERS)


def rank_images(
    document: BeautifulSoup,
    target_name: str,
    base_url: Optional[str] = None,
) -> List[ImageCandidate]:
    """Score inline images against ``target_name``, best first.

    Must run on the unreduced document: the reducer drops every ``<img>``.
    Ties keep document order.
    """
    candidates: List[ImageCandidate] = []
    for img in document.find_all("img"):
        src = resolve_image_source(img)
        if is_rejected_url(src):
            continue
        url = urljoin(base_url, src) if base_url else src
        width = _dimension(img, RENDERED_WIDTH_ATTR, "width")
        height = _dimension(img, RENDERED_HEIGHT_ATTR, "height")
        if min(width, height) < MIN_IMAGE_SIDE:
            continue
        alt_text = _attribute_text(img, "alt")
        candidates.append(
            ImageCandidate(
                url=url,
                alt_text=alt_text,
                width=width,
                height=height,
                similarity=name_similarity(target_name, alt_text),
            )
        )
    candidates.sort(key=lambda candidate: candidate.similarity, reverse=True)
    return candidates


def best_image(
    document: BeautifulSoup,
    target_name: str,
    base_url: Optional[str] = None,
) -> Optional[ImageCandidate]:
    ranked = rank_images(document, target_name, base_url)
    return ranked[0] if ranked else None


def check_image_reachable(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> bool:
    """Confirm an image URL answers a HEAD request with a success status."""
    client = session or requests
    try:
        resp = client.head(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as exc:
        logger.warning("Failed to validate image URL %s: %s", url, exc)
        return False
    if not resp.ok:
        logger.warning("Image URL %s answered with status %s", url, resp.status_code)
        return False
    return True

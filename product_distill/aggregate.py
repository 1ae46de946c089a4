"""Merge per-source evidence and choose one representative image."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from .models import AggregatedEvidence, ImageCandidate, SourceResult
from .utils import truncate

logger = logging.getLogger("product_distill")

ReachabilityCheck = Callable[[str], bool]


def combine_text(results: Sequence[SourceResult], max_chars: Optional[int] = None) -> str:
    texts = [result.cleaned_text for result in results if result.cleaned_text.strip()]
    return truncate("\n".join(texts), max_chars)


def _valid_index(index, size: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < size


async def select_image(
    candidates: Sequence[ImageCandidate],
    target_name: str,
    selector=None,
    reachability_check: Optional[ReachabilityCheck] = None,
) -> Optional[ImageCandidate]:
    """Pick one image; every failure path falls back to the first usable candidate."""
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    filtered: List[ImageCandidate] = list(candidates)
    if reachability_check is not None:
        reachable = await asyncio.gather(
            *(asyncio.to_thread(reachability_check, image.url) for image in filtered)
        )
        filtered = [image for image, ok in zip(filtered, reachable) if ok]
        if not filtered:
            logger.warning("No reachable images left after validation")
            return None
    if len(filtered) == 1 or selector is None:
        return filtered[0]

    try:
        index = await asyncio.to_thread(
            selector.select_best_index, filtered, target_name
        )
    except Exception as exc:  # noqa: BLE001 - selection always has a fallback
        logger.error("Image selection failed, using first candidate: %s", exc)
        return filtered[0]

    if not _valid_index(index, len(filtered)):
        logger.warning(
            "Image selector returned unusable index %r for %d candidate(s)",
            index,
            len(filtered),
        )
        return filtered[0]
    return filtered[index]


async def aggregate(
    results: Sequence[SourceResult],
    target_name: str = "",
    selector=None,
    *,
    reachability_check: Optional[ReachabilityCheck] = None,
    max_chars: Optional[int] = None,
) -> AggregatedEvidence:
    """Join surviving texts in input order and select a representative image."""
    images = [result.image for result in results if result.image is not None]
    selected = await select_image(images, target_name, selector, reachability_check)
    return AggregatedEvidence(
        combined_text=combine_text(results, max_chars),
        images=images,
        selected_image=selected,
        blocks=[block for result in results for block in result.blocks],
        sources=list(results),
    )

"""Bounded-concurrency fan-out of render and distill over many URLs."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_CONCURRENCY_LIMIT, RenderOptions
from .content import process_page
from .errors import RenderTimeout
from .models import SourceResult

logger = logging.getLogger("product_distill")


async def scrape_source(
    url: str,
    target_name: Optional[str],
    renderer,
    render_options: Optional[RenderOptions] = None,
    signal_terms: Optional[Iterable[str]] = None,
    max_text_chars: Optional[int] = None,
) -> Optional[SourceResult]:
    """Render and distill one URL; any failure is logged and yields ``None``."""
    start = time.perf_counter()
    try:
        page = await renderer.render(url, render_options)
        result = process_page(
            page,
            target_name=target_name,
            signal_terms=signal_terms,
            max_text_chars=max_text_chars,
        )
    except RenderTimeout as exc:
        logger.error("Timeout while loading %s: %s", url, exc)
        return None
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error scraping %s", url)
        return None
    logger.debug("Distilled %s in %.2fs", url, time.perf_counter() - start)
    return result


async def scrape_all(
    urls: Sequence[str],
    target_name: Optional[str],
    renderer,
    *,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    render_options: Optional[RenderOptions] = None,
    signal_terms: Optional[Iterable[str]] = None,
    max_text_chars: Optional[int] = None,
) -> List[SourceResult]:
    """Distill every URL with at most ``concurrency_limit`` renders in flight.

    Each URL is attempted once. Failed URLs are dropped, so the result may be
    shorter than ``urls`` and may be empty; this never raises for a per-URL
    failure.
    """
    if concurrency_limit < 1:
        raise ValueError(f"concurrency_limit must be at least 1, got {concurrency_limit}")
    if signal_terms is not None:
        signal_terms = tuple(signal_terms)

    semaphore = asyncio.Semaphore(concurrency_limit)

    async def _bounded(url: str) -> Optional[SourceResult]:
        async with semaphore:
            return await scrape_source(
                url,
                target_name,
                renderer,
                render_options=render_options,
                signal_terms=signal_terms,
                max_text_chars=max_text_chars,
            )

    overall_start = time.perf_counter()
    settled = await asyncio.gather(*(_bounded(url) for url in urls))
    results = [result for result in settled if result is not None]

    failures = len(urls) - len(results)
    if failures:
        logger.warning("%d of %d source(s) failed and were skipped", failures, len(urls))
    logger.info(
        "Fan-out finished in %.2fs (%d/%d succeeded)",
        time.perf_counter() - overall_start,
        len(results),
        len(urls),
    )
    return results

"""High-level orchestration from URLs to prompt-ready evidence and records."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from .aggregate import aggregate
from .config import DistillConfig
from .content import process_page
from .crawler import scrape_all
from .errors import DistillError, SearchUnavailable, ServiceError
from .images import check_image_reachable
from .models import AggregatedEvidence, SourceResult
from .prompts import (
    power_rating_prompt,
    product_name_prompt,
    product_record_prompt,
    retailer_prompt,
    reviews_prompt,
)
from .schemas import (
    PowerRating,
    ProductImage,
    ProductName,
    ProductRecord,
    Retailer,
    RetailerName,
    Review,
    ReviewBatch,
)

logger = logging.getLogger("product_distill")


async def distill_single_page(
    url: str,
    renderer,
    config: Optional[DistillConfig] = None,
    *,
    signals: bool = True,
    target_name: Optional[str] = None,
) -> AggregatedEvidence:
    """Render one page and distill it.

    With ``signals`` the evidence is the proximity context blocks for the
    configured terms, otherwise the page's whole reduced text. Render and
    fatal parse errors propagate. A page without evidence yields an empty
    result rather than an error.
    """
    config = config or DistillConfig()
    page = await renderer.render(url, config.render)
    result = process_page(
        page,
        target_name=target_name,
        signal_terms=config.signal_terms if signals else None,
        max_text_chars=config.max_text_chars,
    )
    if signals and not result.blocks:
        logger.info("No signal found on %s", url)

    images = [result.image] if result.image is not None else []
    return AggregatedEvidence(
        combined_text=result.cleaned_text,
        images=images,
        selected_image=result.image,
        blocks=result.blocks,
        sources=[result],
    )


async def distill_multi_source(
    urls: Sequence[str],
    target_name: str,
    renderer,
    config: Optional[DistillConfig] = None,
    selector=None,
    *,
    signal_terms: Optional[Iterable[str]] = None,
) -> AggregatedEvidence:
    """Fan out over ``urls`` and merge the surviving sources."""
    config = config or DistillConfig()
    results = await scrape_all(
        urls,
        target_name,
        renderer,
        concurrency_limit=config.concurrency_limit,
        render_options=config.render,
        signal_terms=signal_terms,
        max_text_chars=config.max_text_chars,
    )
    reachability_check = check_image_reachable if config.check_image_reachability else None
    return await aggregate(
        results,
        target_name,
        selector,
        reachability_check=reachability_check,
        max_chars=config.max_combined_chars,
    )


async def extract_power_rating(
    url: str,
    renderer,
    extractor,
    config: Optional[DistillConfig] = None,
) -> Optional[PowerRating]:
    """Return the page's power rating, or ``None`` when no rating text exists."""
    evidence = await distill_single_page(url, renderer, config)
    if evidence.is_empty:
        return None
    logger.debug("Evidence for %s: %d chars", url, len(evidence.combined_text))
    rating = await asyncio.to_thread(
        extractor.extract, power_rating_prompt(evidence.combined_text, url), PowerRating
    )
    return rating.model_copy(update={"url": url})


async def collect_reviews(product_name: str, search_provider, extractor) -> List[Review]:
    """Turn review search snippets into five structured reviews, or none."""
    try:
        response = await search_provider.search(f"{product_name} amazon customer reviews")
        snippets = "\n\n".join(result.snippet for result in response.results)
        batch = await asyncio.to_thread(
            extractor.extract, reviews_prompt(snippets), ReviewBatch
        )
    except (SearchUnavailable, ServiceError) as exc:
        logger.error("Error getting reviews for %s: %s", product_name, exc)
        return []
    return batch.reviews


async def find_retailers(
    product_name: str,
    search_provider,
    extractor,
    countries: Sequence[str],
    per_country: int = 2,
) -> List[Retailer]:
    """Top search hits per country, named by the extraction service."""

    async def _search(country: str):
        try:
            return await search_provider.search(f"Where to buy {product_name} in {country}")
        except SearchUnavailable as exc:
            logger.error("Error processing %s: %s", country, exc)
            return None

    responses = await asyncio.gather(*(_search(country) for country in countries))

    retailers: List[Retailer] = []
    for country, response in zip(countries, responses):
        if response is None:
            continue
        for result in response.results[:per_country]:
            try:
                store = await asyncio.to_thread(
                    extractor.extract, retailer_prompt(result.url), RetailerName
                )
            except ServiceError as exc:
                logger.error("Could not name retailer for %s: %s", result.url, exc)
                continue
            retailers.append(
                Retailer(
                    retailer=store.retailer,
                    country=country,
                    price="Price not available",
                    url=result.url,
                )
            )
    return retailers


async def build_product_record(
    url: str,
    renderer,
    search_provider,
    extractor,
    selector=None,
    config: Optional[DistillConfig] = None,
    *,
    include_reviews: bool = False,
    include_retailers: bool = False,
) -> ProductRecord:
    """Seed page → product name → search → multi-source evidence → record."""
    config = config or DistillConfig()

    seed = await distill_single_page(url, renderer, config, signals=False)
    if seed.is_empty:
        raise DistillError(f"Failed to scrape initial URL {url}")
    title = seed.sources[0].title if seed.sources else ""

    named = await asyncio.to_thread(
        extractor.extract, product_name_prompt(seed.combined_text, title), ProductName
    )
    product_name = named.product_name
    logger.info("Identified product %r from %s", product_name, url)

    response = await search_provider.search(product_name)
    urls = [result.url for result in response.results[: config.max_search_results]]
    evidence = await distill_multi_source(urls, product_name, renderer, config, selector)

    sources: List[SourceResult] = evidence.sources
    if not sources:
        logger.warning("No search result could be distilled; using the seed page only")
        sources = seed.sources
    contents = [source.cleaned_text for source in sources if source.cleaned_text.strip()]
    summaries = await asyncio.to_thread(extractor.summarize, contents)
    details = "\n\n".join(summary for summary in summaries if summary)

    record = await asyncio.to_thread(
        extractor.extract, product_record_prompt(product_name, details), ProductRecord
    )

    selected = evidence.selected_image
    updates = {
        "image": ProductImage(url=selected.url, alt=selected.alt_text) if selected else None
    }
    if include_reviews:
        reviews = await collect_reviews(product_name, search_provider, extractor)
        if reviews:
            updates["reviews"] = reviews
    if include_retailers:
        retailers = await find_retailers(
            product_name,
            search_provider,
            extractor,
            config.retailer_countries,
            config.retailers_per_country,
        )
        if retailers:
            updates["where_to_buy"] = retailers
    return record.model_copy(update=updates)

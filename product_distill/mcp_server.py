"""MCP server exposing power-rating and product-record tools."""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from .config import POWER_WAIT_AFTER_LOAD, DistillConfig, RenderOptions
from .extraction import StructuredExtractor
from .pipeline import build_product_record, extract_power_rating
from .renderer import PlaywrightRenderer
from .search import GoogleSearchProvider
from .vision import VisionImageSelector

logger = logging.getLogger("product_distill.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="product-distill")


@mcp.tool()
async def power_rating(url: str) -> str:
    """Render a product page and return its power rating as JSON."""
    config = DistillConfig(render=RenderOptions(wait_after_load=POWER_WAIT_AFTER_LOAD))
    extractor = StructuredExtractor(config.model_id, config.max_tokens)
    async with PlaywrightRenderer(config.render) as renderer:
        rating = await extract_power_rating(url, renderer, extractor, config)
    if rating is None:
        return json.dumps({"error": "No power ratings found"})
    return rating.model_dump_json()


@mcp.tool()
async def product(url: str) -> str:
    """Build a product record from a seed page and related search results."""
    config = DistillConfig()
    extractor = StructuredExtractor(config.model_id, config.max_tokens)
    selector = VisionImageSelector(config.vision_model_id, config.vision_max_tokens)
    async with PlaywrightRenderer(config.render) as renderer:
        record = await build_product_record(
            url,
            renderer,
            GoogleSearchProvider(renderer, config.render),
            extractor,
            selector,
            config,
        )
    return record.model_dump_json()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()

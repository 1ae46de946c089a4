"""Command-line entry point for product evidence distillation."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict
from typing import Any, Dict, Sequence

from .config import (
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_MAX_SEARCH_RESULTS,
    DEFAULT_MODEL_ID,
    DEFAULT_VISION_MODEL_ID,
    POWER_WAIT_AFTER_LOAD,
    DistillConfig,
    RenderOptions,
)
from .extraction import StructuredExtractor
from .models import AggregatedEvidence
from .pipeline import build_product_record, distill_multi_source, extract_power_rating
from .renderer import PlaywrightRenderer
from .search import GoogleSearchProvider
from .vision import VisionImageSelector

logger = logging.getLogger("product_distill.cli")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--wait",
        type=float,
        default=0.0,
        help="Seconds to wait after network idle before reading HTML",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=100.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--max-text-chars",
        type=int,
        default=20_000,
        help="Trim each source's distilled text to this many characters",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_model_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL_ID,
        help="MLX model identifier used for structured extraction",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=2048,
        help="Maximum number of tokens to generate per extraction",
    )


def _add_fanout_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY_LIMIT,
        help="Maximum number of pages rendered at the same time",
    )
    parser.add_argument(
        "--vision-model",
        default=DEFAULT_VISION_MODEL_ID,
        help="MLX VLM identifier used to pick the best product image",
    )
    parser.add_argument(
        "--no-vision",
        action="store_true",
        help="Skip the vision model and keep the first reachable image",
    )
    parser.add_argument(
        "--skip-image-check",
        action="store_true",
        help="Do not confirm that candidate images are reachable",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Render product pages via Playwright, distill them to evidence and extract "
            "structured records using MLX models."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    power_parser = subparsers.add_parser(
        "power", help="Extract the power rating (watts, volts, amps) of a product page"
    )
    power_parser.add_argument("url", help="Product page URL")
    _add_common_arguments(power_parser)
    power_parser.set_defaults(wait=POWER_WAIT_AFTER_LOAD)
    _add_model_arguments(power_parser)

    product_parser = subparsers.add_parser(
        "product", help="Build a full product record from a seed page and web search"
    )
    product_parser.add_argument("url", help="Product page URL")
    product_parser.add_argument(
        "--max-results",
        type=int,
        default=DEFAULT_MAX_SEARCH_RESULTS,
        help="Number of search results to distill",
    )
    product_parser.add_argument(
        "--reviews", action="store_true", help="Collect customer reviews from search"
    )
    product_parser.add_argument(
        "--retailers", action="store_true", help="Look up retailers per country"
    )
    _add_common_arguments(product_parser)
    _add_model_arguments(product_parser)
    _add_fanout_arguments(product_parser)

    evidence_parser = subparsers.add_parser(
        "evidence", help="Distill several URLs into merged evidence without extraction"
    )
    evidence_parser.add_argument("urls", nargs="+", help="Source URLs")
    evidence_parser.add_argument(
        "--name", required=True, help="Target product name used to rank images"
    )
    evidence_parser.add_argument(
        "--signals",
        action="store_true",
        help="Keep only power-rating context blocks instead of the full page text",
    )
    _add_common_arguments(evidence_parser)
    _add_fanout_arguments(evidence_parser)

    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> DistillConfig:
    config = DistillConfig(
        render=RenderOptions(
            timeout_ms=int(args.timeout * 1000),
            wait_after_load=args.wait,
        ),
        max_text_chars=args.max_text_chars,
    )
    if hasattr(args, "model"):
        config.model_id = args.model
        config.max_tokens = args.max_tokens
    if hasattr(args, "concurrency"):
        config.concurrency_limit = args.concurrency
        config.vision_model_id = args.vision_model
        config.check_image_reachability = not args.skip_image_check
    if hasattr(args, "max_results"):
        config.max_search_results = args.max_results
    return config


def _build_selector(args: argparse.Namespace, config: DistillConfig):
    if args.no_vision:
        return None
    return VisionImageSelector(config.vision_model_id, config.vision_max_tokens)


def evidence_to_dict(evidence: AggregatedEvidence) -> Dict[str, Any]:
    return {
        "combined_text": evidence.combined_text,
        "images": [asdict(image) for image in evidence.images],
        "selected_image": asdict(evidence.selected_image) if evidence.selected_image else None,
        "sources": [
            {"url": source.url, "title": source.title, "chars": len(source.cleaned_text)}
            for source in evidence.sources
        ],
    }


async def _run_power(args: argparse.Namespace, config: DistillConfig) -> Dict[str, Any]:
    extractor = StructuredExtractor(config.model_id, config.max_tokens)
    async with PlaywrightRenderer(config.render) as renderer:
        rating = await extract_power_rating(args.url, renderer, extractor, config)
    if rating is None:
        return {"error": "No power ratings found"}
    return rating.model_dump()


async def _run_product(args: argparse.Namespace, config: DistillConfig) -> Dict[str, Any]:
    extractor = StructuredExtractor(config.model_id, config.max_tokens)
    selector = _build_selector(args, config)
    async with PlaywrightRenderer(config.render) as renderer:
        record = await build_product_record(
            args.url,
            renderer,
            GoogleSearchProvider(renderer, config.render),
            extractor,
            selector,
            config,
            include_reviews=args.reviews,
            include_retailers=args.retailers,
        )
    return record.model_dump()


async def _run_evidence(args: argparse.Namespace, config: DistillConfig) -> Dict[str, Any]:
    selector = _build_selector(args, config)
    async with PlaywrightRenderer(config.render) as renderer:
        evidence = await distill_multi_source(
            args.urls,
            args.name,
            renderer,
            config,
            selector,
            signal_terms=config.signal_terms if args.signals else None,
        )
    return evidence_to_dict(evidence)


_COMMANDS = {
    "power": _run_power,
    "product": _run_product,
    "evidence": _run_evidence,
}


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    config = _build_config(args)
    overall_start = time.perf_counter()
    payload = asyncio.run(_COMMANDS[args.command](args, config))
    logger.info("Finished %s in %.2fs", args.command, time.perf_counter() - overall_start)

    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    sys.stdout.flush()


if __name__ == "__main__":
    main()

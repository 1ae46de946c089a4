"""Configuration objects and constants for the distillation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DEFAULT_MODEL_ID = "mlx-community/Qwen2.5-7B-Instruct-4bit"
DEFAULT_VISION_MODEL_ID = "mlx-community/Qwen2-VL-2B-Instruct-4bit"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)
DEFAULT_CONCURRENCY_LIMIT = 3
DEFAULT_MAX_SEARCH_RESULTS = 7
POWER_WAIT_AFTER_LOAD = 3.0

POWER_TERMS: Tuple[str, ...] = (
    "watts",
    "w",
    "kwh",
    "kwhr",
    "kwhrs",
    "watt",
    "volt",
    "volts",
    "v",
    "amp",
    "amps",
    "a",
    "ma",
)


@dataclass
class RenderOptions:
    """Per-render browser settings."""

    viewport_width: int = 1920
    viewport_height: int = 1080
    extra_headers: Dict[str, str] = field(
        default_factory=lambda: {"Accept-Language": "en-US,en;q=0.9"}
    )
    user_agent: str = DEFAULT_USER_AGENT
    wait_until: str = "networkidle"
    timeout_ms: int = 100_000
    wait_after_load: float = 0.0


@dataclass
class DistillConfig:
    """Top-level settings that control rendering, fan-out and generation."""

    render: RenderOptions = field(default_factory=RenderOptions)
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS
    max_text_chars: Optional[int] = 20_000
    max_combined_chars: Optional[int] = None
    signal_terms: Tuple[str, ...] = POWER_TERMS
    model_id: str = DEFAULT_MODEL_ID
    max_tokens: int = 2048
    vision_model_id: str = DEFAULT_VISION_MODEL_ID
    vision_max_tokens: int = 50
    check_image_reachability: bool = True
    retailer_countries: Tuple[str, ...] = ("USA", "Canada", "UK")
    retailers_per_country: int = 2

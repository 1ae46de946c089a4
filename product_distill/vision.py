"""Vision-language image selection powered by an MLX VLM."""

from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import List, Optional, Sequence, cast

import requests
from filetype import guess
from PIL import Image

from .config import DEFAULT_VISION_MODEL_ID
from .errors import ServiceError
from .loader import resolve_load_target
from .models import ImageCandidate
from .prompts import image_selection_prompt

logger = logging.getLogger("product_distill")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_IMAGE_SIDE = 768
_INDEX_PATTERN = re.compile(r"^\s*(\d+)")


def parse_index(text: Optional[str]) -> Optional[int]:
    """Read a leading integer from model output, like ``parseInt``."""
    if not text:
        return None
    match = _INDEX_PATTERN.match(text)
    return int(match.group(1)) if match else None


def _resize(image: Image.Image, max_side: int) -> Image.Image:
    width, height = image.size
    longest_edge = max(width, height)
    if longest_edge <= max_side:
        return image
    scale = max_side / float(longest_edge)
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    return image.resize(new_size, Image.Resampling.LANCZOS)


class VisionImageSelector:
    """Ask a vision-language model which candidate best shows the product."""

    def __init__(
        self,
        model_id: str = DEFAULT_VISION_MODEL_ID,
        max_tokens: int = 50,
        max_image_side: int = DEFAULT_MAX_IMAGE_SIDE,
        timeout: float = 15.0,
    ) -> None:
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.max_image_side = max_image_side
        self.timeout = timeout
        self._model = None
        self._processor = None
        self._config = None
        self._session = requests.Session()

    def _ensure_model(self) -> None:
        if self._model is not None and self._processor is not None:
            return
        from mlx_vlm import load as load_vlm_model

        load_target = resolve_load_target(self.model_id, ("VISION_MODEL_DIR", "MODEL_DIR"))
        logger.info("Loading vision model %s", load_target)
        try:
            model, processor = load_vlm_model(load_target, trust_remote_code=True)
        except Exception as exc:  # noqa: BLE001 - surfaced as a service failure
            raise ServiceError(f"Could not load vision model {load_target}: {exc}") from exc
        self._model = model
        self._processor = processor
        self._config = getattr(model, "config", None)
        if self._config is None:
            raise ServiceError("Loaded vision model does not expose configuration")

    def _fetch_image(self, url: str) -> Image.Image:
        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise ServiceError(f"Failed to fetch image {url}: {exc}") from exc

        data = resp.content
        if len(data) > MAX_IMAGE_BYTES:
            raise ServiceError(f"Image {url} is larger than {MAX_IMAGE_BYTES} bytes")
        kind = guess(data)
        if kind is None or not kind.mime.startswith("image/"):
            raise ServiceError(f"Unsupported image type for {url}")
        try:
            with Image.open(BytesIO(data)) as raw_image:
                image = raw_image.convert("RGB")
        except OSError as exc:
            raise ServiceError(f"Could not decode image {url}: {exc}") from exc
        return _resize(image, self.max_image_side)

    def select_best_index(
        self, candidates: Sequence[ImageCandidate], target_name: str
    ) -> int:
        """Return the model's zero-based choice among ``candidates``."""
        if not candidates:
            raise ServiceError("No candidate images to select from")
        self._ensure_model()
        from mlx_vlm import generate as generate_text
        from mlx_vlm.prompt_utils import apply_chat_template

        images: List[Image.Image] = [self._fetch_image(c.url) for c in candidates]
        formatted_prompt = cast(
            str,
            apply_chat_template(
                self._processor,
                self._config,
                image_selection_prompt(target_name, len(images)),
                num_images=len(images),
            ),
        )
        try:
            result = generate_text(
                self._model,
                self._processor,
                formatted_prompt,
                image=images,
                temperature=0.0,
                max_tokens=self.max_tokens,
                verbose=False,
            )
        except Exception as exc:  # noqa: BLE001 - surfaced as a service failure
            raise ServiceError(f"Vision generation failed: {exc}") from exc

        text = getattr(result, "text", result)
        index = parse_index(text)
        logger.debug("Vision model answered %r for %d image(s)", text, len(images))
        if index is None:
            raise ServiceError(f"Vision model returned a non-numeric answer: {text!r}")
        return index

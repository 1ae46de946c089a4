"""Schema-constrained extraction backed by a local MLX language model."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, List, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .config import DEFAULT_MODEL_ID
from .errors import SchemaValidationError, ServiceError
from .loader import resolve_load_target
from .prompts import EXTRACTION_SYSTEM_PROMPT, SUMMARY_SYSTEM_PROMPT, summary_prompt

logger = logging.getLogger("product_distill")

ModelT = TypeVar("ModelT", bound=BaseModel)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence if the model adds one."""
    text = text.strip()
    if not text.startswith("```"):
        return text

    lines = text.splitlines()
    closing_index = None
    for idx in range(len(lines) - 1, 0, -1):
        if lines[idx].strip().startswith("```"):
            closing_index = idx
            break

    if closing_index is None:
        return text
    return "\n".join(lines[1:closing_index]).strip()


def parse_structured_output(text: str, schema: Type[ModelT]) -> ModelT:
    """Parse the first JSON object in ``text`` and validate it against ``schema``."""
    body = strip_code_fence(text)
    start = body.find("{")
    end = body.rfind("}")
    if start == -1 or end < start:
        raise SchemaValidationError(
            f"No JSON object found in output for {schema.__name__}", raw_output=text
        )
    try:
        payload = json.loads(body[start : end + 1])
    except json.JSONDecodeError as exc:
        raise SchemaValidationError(
            f"Invalid JSON for {schema.__name__}: {exc}", raw_output=text
        ) from exc
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise SchemaValidationError(
            f"Output does not match {schema.__name__}: {exc}", raw_output=text
        ) from exc


class StructuredExtractor:
    """Thin wrapper around an MLX instruct model for extraction and summaries."""

    max_batch_size = 3

    def __init__(self, model_id: str = DEFAULT_MODEL_ID, max_tokens: int = 2048) -> None:
        self.model_id = model_id
        self.max_tokens = max_tokens
        self._model: Any = None
        self._tokenizer: Any = None

    def _ensure_model(self) -> None:
        if self._model is not None and self._tokenizer is not None:
            return
        from mlx_lm import load as load_model

        load_target = resolve_load_target(self.model_id, ("MODEL_DIR",))
        logger.info("Loading model %s", load_target)
        start = time.perf_counter()
        try:
            self._model, self._tokenizer = load_model(load_target)
        except Exception as exc:  # noqa: BLE001 - surfaced as a service failure
            raise ServiceError(f"Could not load model {load_target}: {exc}") from exc
        logger.debug("Loaded model from %s in %.2fs", load_target, time.perf_counter() - start)

    def _build_prompt(self, system_prompt: str, user_content: str) -> List[int]:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        return self._tokenizer.apply_chat_template(
            messages, tokenize=True, add_generation_prompt=True
        )

    def _generate(self, prompts: Sequence[List[int]]) -> List[str]:
        from mlx_lm import batch_generate as batch_generate_text

        logger.debug("Running batch generation for %d prompt(s)", len(prompts))
        try:
            batch_result = batch_generate_text(
                self._model,
                self._tokenizer,
                prompts=list(prompts),
                max_tokens=self.max_tokens,
                verbose=False,
            )
        except Exception as exc:  # noqa: BLE001 - surfaced as a service failure
            raise ServiceError(f"Generation failed: {exc}") from exc
        return [text.strip() for text in batch_result.texts]

    def extract(self, prompt: str, schema: Type[ModelT]) -> ModelT:
        """Generate a JSON object for ``prompt`` and validate it against ``schema``."""
        self._ensure_model()
        schema_json = json.dumps(schema.model_json_schema())
        user_content = f"{prompt}\n\nJSON Schema:\n{schema_json}"
        text = self._generate([self._build_prompt(EXTRACTION_SYSTEM_PROMPT, user_content)])[0]
        return parse_structured_output(text, schema)

    def summarize(self, contents: Sequence[str]) -> List[str]:
        """Summarize each content string, batching generation."""
        if not contents:
            return []
        self._ensure_model()

        results: List[str] = []
        for i in range(0, len(contents), self.max_batch_size):
            batch = contents[i : i + self.max_batch_size]
            logger.debug(
                "Summarizing batch %d of %d (size: %d)",
                (i // self.max_batch_size) + 1,
                (len(contents) + self.max_batch_size - 1) // self.max_batch_size,
                len(batch),
            )
            prompts = [
                self._build_prompt(SUMMARY_SYSTEM_PROMPT, summary_prompt(content))
                for content in batch
            ]
            results.extend(self._generate(prompts))
        return results


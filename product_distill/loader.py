"""Resolve MLX model identifiers to loadable local paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger("product_distill")

ALLOW_PATTERNS = [
    "*.json",
    "model*.safetensors",
    "*.py",
    "tokenizer.model",
    "*.tiktoken",
    "tiktoken.model",
    "*.txt",
    "*.jsonl",
    "*.jinja",
]


def _resolve_env_override(model_id: str, env_vars: Sequence[str]) -> Optional[Path]:
    for env_var in env_vars:
        override = os.getenv(env_var)
        if not override:
            continue
        override_path = Path(override).expanduser()
        if override_path.exists():
            logger.debug("%s override detected at %s", env_var, override_path)
            return override_path
        logger.warning(
            "%s is set to %s but the path does not exist; falling back to %s",
            env_var,
            override_path,
            model_id,
        )
    return None


def _resolve_snapshot_path(repo_id: str) -> Path:
    from huggingface_hub import snapshot_download

    try:
        local_path = Path(
            snapshot_download(
                repo_id,
                local_files_only=True,
                allow_patterns=ALLOW_PATTERNS,
            )
        )
        logger.info(
            "Resolved cached model for %s at %s (local_files_only=True)",
            repo_id,
            local_path,
        )
        return local_path
    except Exception as err:  # noqa: BLE001 - propagate diagnostics
        logger.info(
            "Local cache for %s was not found (%s); attempting snapshot download.",
            repo_id,
            err,
        )
        local_path = Path(snapshot_download(repo_id, allow_patterns=ALLOW_PATTERNS))
        logger.debug("Downloaded model %s to %s", repo_id, local_path)
        return local_path


def resolve_load_target(model_id: str, env_vars: Sequence[str] = ("MODEL_DIR",)) -> str:
    """Environment override first, then a local path, then the Hub cache."""
    env_override = _resolve_env_override(model_id, env_vars)
    if env_override:
        return str(env_override)

    candidate = Path(model_id).expanduser()
    if candidate.exists():
        logger.debug("Model identifier %s resolves to local path %s", model_id, candidate)
        return str(candidate)

    return str(_resolve_snapshot_path(model_id))

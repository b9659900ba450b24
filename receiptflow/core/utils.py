"""Shared utility functions for the receiptflow package."""
import logging
import math
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def get_config_value(key: str, default: str = "") -> str:
    """Get a configuration value from the environment."""
    return os.getenv(key, default)


def load_env_file(path: Path) -> None:
    """Load environment variables from a file if it exists."""
    if not path.exists():
        return

    try:
        with path.open(encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if not key or key in os.environ:
                    continue
                os.environ[key] = value.strip().strip('"').strip("'")
    except OSError as exc:
        logger.debug("Could not load env file %s: %s", path, exc)


def clamp_confidence(value: float) -> float:
    """Pin a confidence into ``[0, 1]``."""

    return min(1.0, max(0.0, value))


def mean_confidence(values, default: float) -> float:
    """Average the finite confidences that are present, or return ``default``.

    The mean is clamped to ``[0, 1]`` so out-of-range provider values cannot
    leak into percentages downstream.
    """

    scores = []
    for value in values:
        if value is None or isinstance(value, bool):
            continue
        try:
            score = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(score):
            scores.append(score)
    if not scores:
        return default
    return clamp_confidence(sum(scores) / len(scores))


def js_round(value: float) -> int:
    """Round halves upward, the way JavaScript's ``Math.round`` does."""

    return int((value + 0.5) // 1)

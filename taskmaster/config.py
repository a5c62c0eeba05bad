"""Configuration resolution for Task Master.

Two sources feed every request: the ambient configuration (the process
environment by default) and an optional per-request session mapping.
Both are passed in explicitly and never mutated here.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple


DIRECT_MODE_KEY = "CLAUDE_DESKTOP"
PRIMARY_API_KEY = "ANTHROPIC_API_KEY"
RESEARCH_API_KEY = "PERPLEXITY_API_KEY"
MODEL_KEY = "MODEL"
MAX_TOKENS_KEY = "MAX_TOKENS"
TEMPERATURE_KEY = "TEMPERATURE"
LOG_LEVEL_KEY = "TASKMASTER_LOG_LEVEL"
LOG_FILE_KEY = "TASKMASTER_LOG_FILE"

# Highest priority first.
MODEL_CONFIG_SOURCES: Tuple[str, ...] = ("session", "ambient")

TRUTHY_STRINGS = frozenset({"true", "1", "yes", "on"})

MAX_TEMPERATURE = 2.0


class ExecutionMode(str, Enum):
    """How generation requests are satisfied."""

    DIRECT_GENERATION = "direct_generation"
    PROVIDER_BACKED = "provider_backed"


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Model parameters for a single request."""

    model: str
    max_tokens: int
    temperature: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "maxTokens": self.max_tokens,
            "temperature": self.temperature,
        }


DEFAULT_MODEL_CONFIG = ModelConfig(
    model="claude-3-7-sonnet-20250219",
    max_tokens=64000,
    temperature=0.2,
)


def coerce_bool(value: Any) -> bool:
    """Explicit boolean coercion for flags arriving as bools or strings."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def parse_int(value: Any) -> Optional[int]:
    """Parse an integer from an int, an integral float or a string; None on failure."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_float(value: Any) -> Optional[float]:
    """Parse a finite float from a number or a string; None on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _sources(ambient: Optional[Mapping[str, Any]], session: Optional[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    return {
        "session": session or {},
        "ambient": os.environ if ambient is None else ambient,
    }


def lookup(key: str, ambient: Optional[Mapping[str, Any]], session: Optional[Mapping[str, Any]]) -> Any:
    """Return the first non-empty value for ``key`` following MODEL_CONFIG_SOURCES."""
    sources = _sources(ambient, session)
    for name in MODEL_CONFIG_SOURCES:
        value = sources[name].get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def resolve_mode(
    ambient: Optional[Mapping[str, Any]] = None,
    session: Optional[Mapping[str, Any]] = None,
) -> ExecutionMode:
    """Direct generation wins when the flag is set in either source."""
    sources = _sources(ambient, session)
    if any(coerce_bool(source.get(DIRECT_MODE_KEY)) for source in sources.values()):
        return ExecutionMode.DIRECT_GENERATION
    return ExecutionMode.PROVIDER_BACKED


def resolve_credential(
    key: str,
    ambient: Optional[Mapping[str, Any]] = None,
    session: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Credential presence check; session value first, then ambient."""
    value = lookup(key, ambient, session)
    return str(value) if value is not None else None


def resolve_model_config(
    ambient: Optional[Mapping[str, Any]] = None,
    session: Optional[Mapping[str, Any]] = None,
    defaults: ModelConfig = DEFAULT_MODEL_CONFIG,
) -> ModelConfig:
    """Resolve each model field independently; unparseable values use the default.

    Never raises: a malformed ``MAX_TOKENS`` or ``TEMPERATURE`` resolves to
    the corresponding field of ``defaults``.
    """
    model = lookup(MODEL_KEY, ambient, session)

    max_tokens = parse_int(lookup(MAX_TOKENS_KEY, ambient, session))
    if max_tokens is None or max_tokens <= 0:
        max_tokens = defaults.max_tokens

    temperature = parse_float(lookup(TEMPERATURE_KEY, ambient, session))
    if temperature is None or not 0.0 <= temperature <= MAX_TEMPERATURE:
        temperature = defaults.temperature

    return ModelConfig(
        model=str(model).strip() if model is not None else defaults.model,
        max_tokens=max_tokens,
        temperature=temperature,
    )


def resolve_log_settings(ambient: Optional[Mapping[str, Any]] = None) -> Tuple[str, Optional[Path]]:
    """Log level and optional JSON log file for the server process."""
    ambient = os.environ if ambient is None else ambient
    level = str(ambient.get(LOG_LEVEL_KEY) or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    log_file = ambient.get(LOG_FILE_KEY)
    return level, Path(log_file).expanduser() if log_file else None


def server_ambient_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Snapshot of the process environment with direct generation enabled by default."""
    ambient = dict(os.environ if environ is None else environ)
    ambient.setdefault(DIRECT_MODE_KEY, "true")
    return ambient

"""
src/config.py
==============
Runtime Settings — VoiceScribe

Responsibility:
    - Load ``.env`` once and read every environment-backed setting
    - Provide defaults for the Deepgram model, OpenAI model, paragraph
      segmentation thresholds, upload size limit and CORS origins
    - Fail fast on malformed numeric values

Settings are read when ``load_settings()`` is called, never at import time.
The app reads only its CORS origins while it is being built, through
``load_cors_origins()``, which has no numeric values to reject.

This module does NOT:
    - Construct vendor clients (see src.stt.deepgram_client, src.analysis)
    - Validate API keys against the vendors
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from src.transcript.paragraph_segmenter import (
    DEFAULT_MIN_WORDS_PER_PARAGRAPH,
    DEFAULT_PAUSE_THRESHOLD_SEC,
    SegmenterConfig,
)

load_dotenv()

logger = logging.getLogger("voicescribe.config")


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_DEEPGRAM_MODEL = "nova-2"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_MAX_UPLOAD_MB = 50


@dataclass(frozen=True)
class Settings:
    """Environment-backed service settings."""

    deepgram_api_key: str | None
    deepgram_model: str
    openai_api_key: str | None
    openai_model: str
    segmenter: SegmenterConfig
    max_upload_bytes: int
    cors_allow_origins: tuple[str, ...]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_settings() -> Settings:
    """
    Read all settings from the process environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed or is out of range.
    """
    segmenter = SegmenterConfig(
        pause_threshold_sec=_float_env(
            "PARAGRAPH_PAUSE_THRESHOLD_SEC", DEFAULT_PAUSE_THRESHOLD_SEC
        ),
        min_words_per_paragraph=_int_env(
            "PARAGRAPH_MIN_WORDS", DEFAULT_MIN_WORDS_PER_PARAGRAPH
        ),
    )

    max_upload_mb = _int_env("MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB)
    if max_upload_mb <= 0:
        raise ValueError(f"MAX_UPLOAD_MB must be positive, got {max_upload_mb}")

    return Settings(
        deepgram_api_key=os.environ.get("DEEPGRAM_API_KEY") or None,
        deepgram_model=os.environ.get("DEEPGRAM_MODEL", DEFAULT_DEEPGRAM_MODEL),
        openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
        openai_model=os.environ.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        segmenter=segmenter,
        max_upload_bytes=max_upload_mb * 1024 * 1024,
        cors_allow_origins=load_cors_origins(),
    )


def load_cors_origins() -> tuple[str, ...]:
    """Comma-separated ``CORS_ALLOW_ORIGINS``; ``("*",)`` when unset or blank."""
    origins = tuple(
        origin.strip()
        for origin in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",")
        if origin.strip()
    )
    return origins or ("*",)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc

"""
src/stt/deepgram_client.py
===========================
Deepgram STT Client — VoiceScribe

Responsibility:
    - Build a Deepgram SDK client from an API key
    - Send one uploaded audio file to Deepgram's pre-recorded endpoint
      with the caller's options (model, language / detection, smart
      formatting, punctuation, numerals, diarization)
    - Retry transient vendor failures (src.api_retry)
    - Return the vendor payload as a plain dict

The client is always passed in by the caller (the FastAPI dependency in
src.api.upload), never constructed at import time.

This module does NOT:
    - Reshape the payload (handled by src.transcript)
    - Validate the uploaded file (handled by src.audio.validator)
    - Decide which options the user may request
"""

import logging
from typing import Any

from src.api_retry import call_with_retry
from src.stt.options import TranscriptionOptions

logger = logging.getLogger("voicescribe.stt.deepgram_client")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TranscriptionError(RuntimeError):
    """Raised when the Deepgram API call fails or cannot be made."""
    pass


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_client(api_key: str | None) -> Any:
    """
    Construct a ``deepgram.DeepgramClient``.

    Raises:
        TranscriptionError: If the API key is missing or the SDK is absent.
    """
    if not api_key:
        raise TranscriptionError("DEEPGRAM_API_KEY environment variable is not set.")

    try:
        from deepgram import DeepgramClient
    except ImportError as exc:
        raise TranscriptionError(
            "Deepgram SDK is required. Install with: pip install deepgram-sdk"
        ) from exc

    return DeepgramClient(api_key=api_key)


def transcribe(
    audio_bytes: bytes,
    options: TranscriptionOptions,
    client: Any,
) -> dict[str, Any]:
    """
    Transcribe a complete audio file with Deepgram.

    Args:
        audio_bytes: Raw bytes of the uploaded file (any format Deepgram decodes).
        options:     Requested transcription options.
        client:      A ``DeepgramClient`` (or compatible test double).

    Returns:
        The vendor response as a dict (results → channels → alternatives,
        plus metadata).

    Raises:
        TranscriptionError: If the API call fails after retries.
    """
    kwargs = options.to_deepgram_kwargs()
    logger.info(
        "Sending %d bytes to Deepgram (model=%s, diarize=%s, language=%s).",
        len(audio_bytes),
        options.model,
        options.diarize,
        "auto" if options.detects_language else options.language,
    )

    try:
        response = call_with_retry(
            client.listen.v1.media.transcribe_file,
            request=audio_bytes,
            label="Deepgram",
            **kwargs,
        )
    except Exception as exc:
        raise TranscriptionError(f"Deepgram transcription failed: {exc}") from exc

    payload = _to_payload(response)
    _log_response_metadata(payload, len(audio_bytes))
    return payload


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_payload(response: Any) -> dict[str, Any]:
    """Convert an SDK response model into a plain dict."""
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "to_dict"):
        return response.to_dict()
    raise TranscriptionError(
        f"Unexpected Deepgram response type: {type(response).__name__}"
    )


def _log_response_metadata(payload: dict[str, Any], audio_size: int) -> None:
    """Log Deepgram response metadata for debugging."""
    try:
        metadata = payload.get("metadata") or {}
        duration = float(metadata.get("duration") or 0.0)

        channels = (payload.get("results") or {}).get("channels") or []
        n_words = 0
        detected_lang = None
        if channels:
            ch0 = channels[0] or {}
            detected_lang = ch0.get("detected_language")
            alternatives = ch0.get("alternatives") or []
            if alternatives:
                n_words = len((alternatives[0] or {}).get("words") or [])

        logger.info(
            "Deepgram response: audio_size=%d bytes, duration=%.2fs, "
            "channels=%d, words=%d, language=%s",
            audio_size,
            duration,
            len(channels),
            n_words,
            detected_lang or "unknown",
        )

        if duration and duration < 5.0 and audio_size > 1_000_000:
            logger.warning(
                "Deepgram reported only %.2fs duration for %d bytes of audio. "
                "This suggests audio may be truncated or malformed.",
                duration, audio_size,
            )

    except Exception as exc:
        logger.debug("Failed to log Deepgram response metadata: %s", exc)

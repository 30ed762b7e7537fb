"""
src/transcript/normalizer.py
=============================
Word Stream Normalizer — VoiceScribe

Responsibility:
    - Accept a Deepgram pre-recorded response (dict or SDK object)
    - Locate the first channel / first alternative
    - Extract transcript text, confidence, detected language and duration
    - Flatten the per-word array into one ordered tuple of ``Word``,
      whatever shape the API version used:
          * a bare list of word entries
          * results.channels[0].alternatives[0].words
          * alternatives[0].paragraphs.paragraphs[*].words
          * alternatives[0].paragraphs.paragraphs[*].sentences[*].words
    - Reject payloads with no usable transcript (``MalformedResponse``)

Word ordering is the vendor's (ascending ``start``) and is not re-validated.

This module does NOT:
    - Call the Deepgram API
    - Segment paragraphs or group speaker turns
    - Retry anything (a malformed payload is never transient)
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.transcript.models import Word

logger = logging.getLogger("voicescribe.transcript.normalizer")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MalformedResponse(ValueError):
    """Raised when a vendor payload carries no usable transcript."""
    pass


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizedResponse:
    """Canonical view of a vendor payload."""

    transcript: str
    confidence: float | None
    detected_language: str | None
    duration_seconds: float | None
    words: tuple[Word, ...]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_response(payload: Any) -> NormalizedResponse:
    """
    Parse a vendor payload into a ``NormalizedResponse``.

    Args:
        payload: Deepgram response (dict, SDK object) or a bare list of
                 word entries.

    Returns:
        NormalizedResponse with a flat, ordered word tuple.

    Raises:
        MalformedResponse: If no channel/alternative exists or the
            transcript text is empty or absent.
    """
    if isinstance(payload, (list, tuple)):
        return _normalize_word_list(payload)

    if payload is None:
        raise MalformedResponse("Transcription payload is empty.")

    results = _get_attr(payload, "results", None)
    channels = _get_attr(results, "channels", None) if results is not None else None
    if not channels:
        raise MalformedResponse("Transcription payload has no channels.")

    channel = channels[0]
    alternatives = _get_attr(channel, "alternatives", None)
    if not alternatives:
        raise MalformedResponse("Transcription payload has no alternatives.")

    alternative = alternatives[0]
    raw_transcript = _get_attr(alternative, "transcript", None)
    if raw_transcript is not None and not isinstance(raw_transcript, str):
        raise MalformedResponse(
            f"Transcript must be text, got {type(raw_transcript).__name__}."
        )
    transcript = (raw_transcript or "").strip()
    if not transcript:
        raise MalformedResponse("Transcription payload contains an empty transcript.")

    words = _extract_words(alternative)

    detected_language = _get_attr(channel, "detected_language", None)
    if detected_language is None:
        detected_language = _get_attr(alternative, "detected_language", None)

    metadata = _get_attr(payload, "metadata", None)
    duration = _get_attr(metadata, "duration", None) if metadata is not None else None

    normalized = NormalizedResponse(
        transcript=transcript,
        confidence=_optional_float(_get_attr(alternative, "confidence", None)),
        detected_language=detected_language or None,
        duration_seconds=_optional_float(duration),
        words=words,
    )

    logger.debug(
        "Normalized payload: %d words, language=%s, duration=%s",
        len(normalized.words),
        normalized.detected_language or "unknown",
        normalized.duration_seconds,
    )
    return normalized


def normalize_words(entries: Any) -> tuple[Word, ...]:
    """
    Convert a sequence of vendor word entries into ``Word`` objects.

    Entries without any text are dropped.
    """
    words = (_to_word(entry) for entry in entries or ())
    return tuple(word for word in words if word.text)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _normalize_word_list(entries: Any) -> NormalizedResponse:
    words = normalize_words(entries)
    transcript = " ".join(w.text for w in words if w.text).strip()
    if not transcript:
        raise MalformedResponse("Word list contains no transcript text.")
    return NormalizedResponse(
        transcript=transcript,
        confidence=None,
        detected_language=None,
        duration_seconds=None,
        words=words,
    )


def _extract_words(alternative: Any) -> tuple[Word, ...]:
    """
    Pull the word array from an alternative.

    The flat ``words`` array wins when present; otherwise words nested in
    the paragraphs structure are collected in order. Paragraph-level
    ``speaker`` is inherited by words that carry none.
    """
    flat = _get_attr(alternative, "words", None)
    if flat:
        return normalize_words(flat)

    container = _get_attr(alternative, "paragraphs", None)
    if container is None:
        return ()

    paragraphs = _get_attr(container, "paragraphs", None)
    if paragraphs is None and isinstance(container, (list, tuple)):
        paragraphs = container

    words: list[Word] = []
    for paragraph in paragraphs or ():
        inherited = _optional_int(_get_attr(paragraph, "speaker", None))

        entries = _get_attr(paragraph, "words", None)
        if not entries:
            entries = [
                entry
                for sentence in _get_attr(paragraph, "sentences", None) or ()
                for entry in _get_attr(sentence, "words", None) or ()
            ]

        for entry in entries:
            word = _to_word(entry)
            if not word.text:
                continue
            if word.speaker is None and inherited is not None:
                word = Word(word.text, word.start, word.end, inherited)
            words.append(word)

    return tuple(words)


def _to_word(entry: Any) -> Word:
    text = (
        _get_attr(entry, "punctuated_word", None)
        or _get_attr(entry, "word", None)
        or _get_attr(entry, "text", None)
        or ""
    )
    return Word(
        text=str(text).strip(),
        start=_optional_float(_get_attr(entry, "start", None)) or 0.0,
        end=_optional_float(_get_attr(entry, "end", None)) or 0.0,
        speaker=_optional_int(_get_attr(entry, "speaker", None)),
    )


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Expected a number, got {value!r}.") from exc


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Expected an integer speaker tag, got {value!r}.") from exc


def _get_attr(obj, name: str, default):
    """Get an attribute from an SDK object or dict key, with a default."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)

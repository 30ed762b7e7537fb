"""
src/transcript/speaker_grouper.py
==================================
Speaker Turn Grouper — VoiceScribe

Responsibility:
    - Walk the word stream once and emit a ``SpeakerTurn`` for every
      maximal run of words sharing a diarization tag

Untagged words policy:
    A word without a speaker tag continues the open run; a missing tag
    never starts a new turn. Untagged words at the very start of the stream
    join the first tagged run; a stream with no tags at all becomes a
    single turn under index 0.

Speaker indices are the vendor's tags, passed through unchanged. They are
not renumbered or sorted, so index 0 is not guaranteed to be the first
voice heard.

This module does NOT:
    - Run diarization (done by the vendor when ``diarize`` is requested)
    - Decide whether grouping should run (see src.transcript.process_response)
"""

import logging
from typing import Sequence

from src.transcript.models import SpeakerTurn, Word

logger = logging.getLogger("voicescribe.transcript.speaker_grouper")

# Index used when the stream carries no speaker tags at all.
FALLBACK_SPEAKER_INDEX = 0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def group_speaker_turns(words: Sequence[Word]) -> list[SpeakerTurn]:
    """
    Group consecutive same-speaker words into turns.

    Args:
        words: Ordered word stream from the normalizer.

    Returns:
        Speaker turns in stream order. Words with empty text are skipped;
        empty input yields an empty list.
    """
    words = [w for w in words if w.text]
    if not words:
        return []

    turns: list[SpeakerTurn] = []
    current_speaker: int | None = None
    current: list[str] = []

    for word in words:
        speaker = word.speaker

        if speaker is None or speaker == current_speaker:
            current.append(word.text)
            continue

        if current_speaker is None:
            # Leading untagged words belong to the first tagged speaker
            current_speaker = speaker
            current.append(word.text)
            continue

        turns.append(_make_turn(current_speaker, current))
        current_speaker = speaker
        current = [word.text]

    # Flush the open run
    if current:
        index = FALLBACK_SPEAKER_INDEX if current_speaker is None else current_speaker
        turns.append(_make_turn(index, current))

    logger.debug(
        "Grouped %d words into %d speaker turns (%d distinct speakers).",
        len(words),
        len(turns),
        len({t.speaker_index for t in turns}),
    )
    return turns


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _make_turn(speaker_index: int, texts: list[str]) -> SpeakerTurn:
    return SpeakerTurn(
        speaker_index=speaker_index,
        text=" ".join(t for t in texts if t),
    )

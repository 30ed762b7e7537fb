"""
src/transcript/paragraph_segmenter.py
======================================
Paragraph Segmenter — VoiceScribe

Splits the normalized word stream into readable paragraphs. A boundary is
placed after a word only when all three hold:

    1. the open paragraph already has >= ``min_words_per_paragraph`` words
    2. the word ends a sentence ('.', '!' or '?')
    3. the pause before the next word exceeds ``pause_threshold_sec``

The trailing group is always flushed, even when shorter than the minimum.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from src.transcript.models import Paragraph, Word

logger = logging.getLogger("voicescribe.transcript.paragraph_segmenter")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# Silence (seconds) between two words that may end a paragraph.
DEFAULT_PAUSE_THRESHOLD_SEC: float = 1.5

# Paragraphs shorter than this are never closed early.
DEFAULT_MIN_WORDS_PER_PARAGRAPH: int = 10

_SENTENCE_TERMINALS = (".", "!", "?")

# Closing marks that may follow the terminal: 'end."' or 'end.)'
_TRAILING_CLOSERS = "\"')]»”’"


@dataclass(frozen=True)
class SegmenterConfig:
    """Tunable thresholds for paragraph segmentation."""

    pause_threshold_sec: float = DEFAULT_PAUSE_THRESHOLD_SEC
    min_words_per_paragraph: int = DEFAULT_MIN_WORDS_PER_PARAGRAPH

    def __post_init__(self) -> None:
        if self.pause_threshold_sec < 0:
            raise ValueError(
                f"pause_threshold_sec must be >= 0, got {self.pause_threshold_sec}"
            )
        if self.min_words_per_paragraph < 1:
            raise ValueError(
                f"min_words_per_paragraph must be >= 1, got {self.min_words_per_paragraph}"
            )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def segment_paragraphs(
    words: Sequence[Word],
    config: SegmenterConfig | None = None,
) -> list[Paragraph]:
    """
    Group words into paragraphs using pause and sentence-terminal signals.

    Args:
        words:  Ordered word stream from the normalizer.
        config: Thresholds; defaults apply when omitted.

    Returns:
        Paragraphs in original order. Words with empty text are skipped;
        empty input yields an empty list.
    """
    config = config or SegmenterConfig()
    words = [w for w in words if w.text]
    if not words:
        return []

    paragraphs: list[Paragraph] = []
    current: list[str] = []
    last_index = len(words) - 1

    for i, word in enumerate(words):
        current.append(word.text)
        if i == last_index:
            break

        pause = words[i + 1].start - word.end
        if (
            len(current) >= config.min_words_per_paragraph
            and ends_sentence(word.text)
            and pause > config.pause_threshold_sec
        ):
            paragraphs.append(_make_paragraph(current))
            current = []

    # Flush the trailing group regardless of size
    if current:
        paragraphs.append(_make_paragraph(current))

    logger.debug(
        "Segmented %d words into %d paragraphs (pause>%.2fs, min=%d).",
        len(words),
        len(paragraphs),
        config.pause_threshold_sec,
        config.min_words_per_paragraph,
    )
    return paragraphs


def single_paragraph(transcript: str) -> list[Paragraph]:
    """Return the whole transcript as a one-element paragraph list."""
    return [Paragraph(text=transcript)]


def ends_sentence(text: str) -> bool:
    """True if ``text`` ends with a sentence terminal (closers ignored)."""
    return text.rstrip().rstrip(_TRAILING_CLOSERS).endswith(_SENTENCE_TERMINALS)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _make_paragraph(texts: list[str]) -> Paragraph:
    return Paragraph(text=" ".join(t for t in texts if t))

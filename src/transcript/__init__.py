# src/transcript/__init__.py
# ===========================
# Transcript Post-Processing — VoiceScribe
#
# Turns a vendor transcription payload into the paragraph / speaker-turn
# structure the UI and exports consume:
#   1. Word Stream Normalizer  (payload → Word tuple + scalars)
#   2. Paragraph Segmenter     (pause + sentence-terminal heuristic)
#   3. Speaker Turn Grouper    (only when diarization was requested)
#   4. Response Assembler      (→ TranscriptionResult)
#
# Pure, synchronous and reentrant: no I/O, no shared state, no retries.
#
# Public API:
#   process_response(payload, options, config) → TranscriptionResult

import logging
from typing import Any

from src.stt.options import TranscriptionOptions
from src.transcript.assembler import assemble_result
from src.transcript.models import (  # noqa: F401
    Paragraph,
    SpeakerTurn,
    TranscriptionResult,
    Word,
)
from src.transcript.normalizer import (  # noqa: F401
    MalformedResponse,
    NormalizedResponse,
    normalize_response,
)
from src.transcript.paragraph_segmenter import (  # noqa: F401
    SegmenterConfig,
    segment_paragraphs,
    single_paragraph,
)
from src.transcript.speaker_grouper import group_speaker_turns

logger = logging.getLogger("voicescribe.transcript")


def process_response(
    payload: Any,
    options: TranscriptionOptions | None = None,
    config: SegmenterConfig | None = None,
) -> TranscriptionResult:
    """
    Run the full post-processing chain over one vendor payload.

    Args:
        payload: Deepgram response (dict or SDK object) or a bare word list.
        options: Requested transcription options; only ``paragraphs`` and
                 ``diarize`` affect post-processing.
        config:  Paragraph segmentation thresholds.

    Returns:
        The assembled TranscriptionResult.

    Raises:
        MalformedResponse: If the payload has no usable transcript.
    """
    options = options or TranscriptionOptions()
    normalized = normalize_response(payload)

    if options.paragraphs and normalized.words:
        paragraphs = segment_paragraphs(normalized.words, config)
    else:
        # No segmentation requested, or no word timings to segment on
        paragraphs = single_paragraph(normalized.transcript)

    speaker_turns = None
    if options.diarize:
        speaker_turns = group_speaker_turns(normalized.words)

    result = assemble_result(
        transcript=normalized.transcript,
        paragraphs=paragraphs,
        speaker_turns=speaker_turns,
        confidence=normalized.confidence,
        detected_language=normalized.detected_language,
        duration_seconds=normalized.duration_seconds,
    )

    logger.info(
        "Transcript processed: %d words, %d paragraphs, %s speaker turns.",
        len(normalized.words),
        len(result.paragraphs),
        "no" if result.speaker_turns is None else len(result.speaker_turns),
    )
    return result


__all__ = [
    "process_response",
    "normalize_response",
    "segment_paragraphs",
    "single_paragraph",
    "group_speaker_turns",
    "assemble_result",
    "MalformedResponse",
    "NormalizedResponse",
    "SegmenterConfig",
    "Word",
    "Paragraph",
    "SpeakerTurn",
    "TranscriptionResult",
]

"""
src/transcript/assembler.py
============================
Response Assembler — VoiceScribe

Pure merge of the normalizer's scalars with the segmenter and grouper
outputs. No validation happens here; the normalizer already rejected
unusable payloads.
"""

from typing import Sequence

from src.transcript.models import Paragraph, SpeakerTurn, TranscriptionResult


def assemble_result(
    transcript: str,
    paragraphs: Sequence[Paragraph],
    speaker_turns: Sequence[SpeakerTurn] | None = None,
    confidence: float | None = None,
    detected_language: str | None = None,
    duration_seconds: float | None = None,
) -> TranscriptionResult:
    """
    Build the final, immutable ``TranscriptionResult``.

    ``speaker_turns=None`` means diarization was not requested and is kept
    distinct from an empty sequence.
    """
    return TranscriptionResult(
        transcript=transcript,
        confidence=confidence,
        detected_language=detected_language,
        duration_seconds=duration_seconds,
        paragraphs=tuple(paragraphs),
        speaker_turns=None if speaker_turns is None else tuple(speaker_turns),
    )

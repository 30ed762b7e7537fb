"""
src/transcript/models.py
=========================
Transcript Data Types — VoiceScribe

Immutable value objects passed between the transcript post-processing
stages and returned to the presentation layer.

JSON contract (``TranscriptionResult.to_dict``):
    {
        "transcript":        str,
        "confidence":        float | null,
        "detected_language": str | null,
        "duration_seconds":  float | null,
        "paragraphs":        [{"text": str}],
        "speaker_turns":     [{"speaker_index": int, "text": str}] | null
    }

``speaker_turns`` is null when diarization was not requested and an empty
list when it was requested but nothing was found.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Word:
    """A single recognized word with timing and an optional speaker tag."""

    text: str
    start: float
    end: float
    speaker: int | None = None


@dataclass(frozen=True)
class Paragraph:
    """A display paragraph: space-joined word texts in original order."""

    text: str

    def to_dict(self) -> dict:
        return {"text": self.text}


@dataclass(frozen=True)
class SpeakerTurn:
    """A maximal run of consecutive words attributed to one speaker tag."""

    speaker_index: int
    text: str

    def to_dict(self) -> dict:
        return {"speaker_index": self.speaker_index, "text": self.text}


@dataclass(frozen=True)
class TranscriptionResult:
    """Final transcript returned to the caller."""

    transcript: str
    confidence: float | None
    detected_language: str | None
    duration_seconds: float | None
    paragraphs: tuple[Paragraph, ...]
    speaker_turns: tuple[SpeakerTurn, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON contract consumed by the UI and exports."""
        return {
            "transcript": self.transcript,
            "confidence": self.confidence,
            "detected_language": self.detected_language,
            "duration_seconds": self.duration_seconds,
            "paragraphs": [p.to_dict() for p in self.paragraphs],
            "speaker_turns": (
                None
                if self.speaker_turns is None
                else [t.to_dict() for t in self.speaker_turns]
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptionResult":
        """
        Rebuild a result from its ``to_dict`` form.

        Raises:
            ValueError: If ``transcript`` is missing or a list entry is malformed.
        """
        transcript = data.get("transcript")
        if not isinstance(transcript, str):
            raise ValueError("'transcript' must be a string")

        try:
            paragraphs = tuple(
                Paragraph(text=str(p["text"])) for p in data.get("paragraphs") or []
            )
            raw_turns = data.get("speaker_turns")
            speaker_turns = (
                None
                if raw_turns is None
                else tuple(
                    SpeakerTurn(speaker_index=int(t["speaker_index"]), text=str(t["text"]))
                    for t in raw_turns
                )
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed transcription result: {exc}") from exc

        return cls(
            transcript=transcript,
            confidence=data.get("confidence"),
            detected_language=data.get("detected_language"),
            duration_seconds=data.get("duration_seconds"),
            paragraphs=paragraphs,
            speaker_turns=speaker_turns,
        )

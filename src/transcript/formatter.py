"""
src/transcript/formatter.py
============================
Plain-Text Rendering — VoiceScribe

Renders a ``TranscriptionResult`` as text for the TXT export and as the
input handed to the analysis model. Three views mirror the UI tabs:

    plain       the raw transcript
    paragraphs  paragraphs separated by blank lines
    speakers    "Speaker N:" blocks, N = speaker_index + 1

A view with nothing to show falls back: speakers → paragraphs → plain.
"""

from src.transcript.models import TranscriptionResult

VIEW_PLAIN = "plain"
VIEW_PARAGRAPHS = "paragraphs"
VIEW_SPEAKERS = "speakers"

VALID_VIEWS: set[str] = {VIEW_PLAIN, VIEW_PARAGRAPHS, VIEW_SPEAKERS}

DEFAULT_SPEAKER_LABEL = "Speaker"


def render_text(
    result: TranscriptionResult,
    view: str = VIEW_PLAIN,
    speaker_label: str = DEFAULT_SPEAKER_LABEL,
) -> str:
    """
    Render ``result`` in the requested view.

    Raises:
        ValueError: If ``view`` is not one of ``VALID_VIEWS``.
    """
    if view not in VALID_VIEWS:
        raise ValueError(
            f"Unknown view {view!r}. Must be one of {sorted(VALID_VIEWS)}"
        )

    if view == VIEW_SPEAKERS and result.speaker_turns:
        return "\n\n".join(
            f"{speaker_label} {turn.speaker_index + 1}:\n{turn.text}"
            for turn in result.speaker_turns
        )

    if view in (VIEW_SPEAKERS, VIEW_PARAGRAPHS) and result.paragraphs:
        return "\n\n".join(p.text for p in result.paragraphs)

    return result.transcript

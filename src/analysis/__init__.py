# src/analysis/__init__.py
# =========================
# Transcript Analysis — VoiceScribe
#
# OpenAI-backed summary, key points and topic extraction for a finished
# transcript.
#
# Public API:
#   analyze_transcript(text, client, model) → TranscriptInsights

from src.analysis.insights import (  # noqa: F401
    AnalysisError,
    Topic,
    TranscriptInsights,
    analyze_transcript,
    build_client,
)

"""
src/schemas/requests.py
========================
JSON request bodies accepted by the VoiceScribe API.
"""

from typing import Any

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    """Body of POST /api/analyze."""

    text: str = Field(..., description="Transcript text to analyse.")


class ExportRequest(BaseModel):
    """Body of POST /api/export/txt."""

    result: dict[str, Any] = Field(
        ..., description="A TranscriptionResult in its JSON form."
    )
    view: str = Field("plain", description="plain | paragraphs | speakers")
    title: str = Field("transcription", description="Download file name, without extension.")
    speaker_label: str = Field("Speaker", description="Prefix for speaker blocks.")

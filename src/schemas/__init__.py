# src/schemas/__init__.py
# ========================
# API Request Schemas — VoiceScribe
#
# Pydantic models for the JSON bodies of the analysis and export endpoints.
# The transcription endpoint takes multipart form data and the response
# contract lives in src.transcript.models.TranscriptionResult.

from src.schemas.requests import AnalyzeRequest, ExportRequest  # noqa: F401

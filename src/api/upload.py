"""
src/api/upload.py
==================
HTTP API — VoiceScribe

Endpoints:
    POST /api/transcribe   multipart upload (``audio`` file + optional
                           ``options`` JSON) → TranscriptionResult JSON
    POST /api/analyze      {"text": ...} → summary, key points, topics
    POST /api/export/txt   {"result": ..., "view": ..., "title": ...}
                           → text/plain attachment
    GET  /api/health       liveness probe

Vendor clients and settings are FastAPI dependencies (``get_settings``,
``get_deepgram_client``, ``get_openai_client``).

This is the only layer that converts exceptions into HTTP status codes.
"""

import asyncio
import logging
import re
from typing import Any
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from src.analysis import insights
from src.analysis.insights import AnalysisError, analyze_transcript
from src.audio.validator import (
    AudioTooLargeError,
    AudioValidationError,
    validate_byte_count,
)
from src.config import Settings, load_cors_origins, load_settings
from src.pipeline import run_transcription
from src.schemas import AnalyzeRequest, ExportRequest
from src.stt import deepgram_client
from src.stt.deepgram_client import TranscriptionError
from src.stt.options import InvalidOptionsError
from src.transcript.formatter import render_text
from src.transcript.models import TranscriptionResult
from src.transcript.normalizer import MalformedResponse

logger = logging.getLogger("voicescribe.api")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="VoiceScribe",
    description="Speech-to-text transcription with paragraph and speaker formatting.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(load_cors_origins()),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    return load_settings()


def get_deepgram_client(settings: Settings = Depends(get_settings)) -> Any:
    try:
        return deepgram_client.build_client(settings.deepgram_api_key)
    except TranscriptionError as exc:
        logger.error("Deepgram client unavailable: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))


def get_openai_client(settings: Settings = Depends(get_settings)) -> Any:
    try:
        return insights.build_client(settings.openai_api_key)
    except EnvironmentError as exc:
        logger.error("OpenAI client unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="AI analysis is not configured.")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/transcribe")
async def transcribe_audio(
    audio: UploadFile | None = File(None),
    options: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    client: Any = Depends(get_deepgram_client),
):
    """
    Transcribe an uploaded audio file.

    Returns:
        TranscriptionResult JSON: transcript, confidence, detected_language,
        duration_seconds, paragraphs, speaker_turns.
    """
    # Guard: file must be provided
    if audio is None or not audio.filename:
        raise HTTPException(status_code=400, detail="No audio file provided")

    logger.info("Audio file received: %s (%s)", audio.filename, audio.content_type)

    try:
        audio_bytes = await _read_upload(audio, settings.max_upload_bytes)
    except AudioTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except Exception:
        raise HTTPException(status_code=400, detail="Failed to read uploaded file.")

    try:
        result = await asyncio.to_thread(
            run_transcription,
            audio_bytes,
            audio.filename,
            audio.content_type,
            options,
            client,
            settings,
        )
    except AudioTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except AudioValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except InvalidOptionsError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except MalformedResponse as exc:
        logger.error("Transcription returned no usable transcript: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except TranscriptionError as exc:
        logger.error("Transcription error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))

    return JSONResponse(status_code=200, content=result.to_dict())


@app.post("/api/analyze")
async def analyze(
    body: AnalyzeRequest,
    settings: Settings = Depends(get_settings),
    client: Any = Depends(get_openai_client),
):
    """Summarise a transcript and extract key points and topics."""
    if not body.text.strip():
        raise HTTPException(status_code=422, detail="Transcript text is empty.")

    try:
        result = await asyncio.to_thread(
            analyze_transcript, body.text, client, settings.openai_model
        )
    except AnalysisError as exc:
        logger.error("AI processing error: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to process transcription with AI")

    return JSONResponse(status_code=200, content=result.to_dict())


@app.post("/api/export/txt")
async def export_txt(body: ExportRequest):
    """Render a transcription result as a downloadable text file."""
    try:
        result = TranscriptionResult.from_dict(body.result)
        text = render_text(result, body.view, body.speaker_label)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return Response(
        content=text,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": _attachment_header(body.title, "txt")},
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_READ_CHUNK_BYTES = 1024 * 1024

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\r\n]+')


async def _read_upload(audio: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, stopping as soon as it passes ``max_bytes``."""
    declared = getattr(audio, "size", None)
    if declared is not None:
        validate_byte_count(declared, max_bytes)

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await audio.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        validate_byte_count(total, max_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


def _attachment_header(title: str, extension: str) -> str:
    """Content-Disposition with an ASCII fallback and a UTF-8 filename*."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", title).strip() or "transcription"
    filename = f"{name}.{extension}"
    ascii_stem = name.encode("ascii", "ignore").decode().strip() or "transcription"
    ascii_name = f"{ascii_stem}.{extension}"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"

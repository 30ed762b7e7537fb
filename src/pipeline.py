"""
src/pipeline.py
================
Transcription Pipeline Orchestrator — VoiceScribe

Execution order:
    Step 1: Upload validation          → src.audio.validator
    Step 2: Option parsing             → src.stt.options
    Step 3: Deepgram transcription     → src.stt.deepgram_client
    Step 4: Transcript post-processing → src.transcript.process_response

Either a complete ``TranscriptionResult`` is returned or an exception
propagates; no half-populated result is ever produced.

This layer MUST NOT:
    - Reshape the vendor payload itself (src.transcript owns that)
    - Convert exceptions to HTTP responses (src.api owns that)
"""

import logging
import time
from typing import Any

from src.audio.validator import validate_upload
from src.config import Settings
from src.stt.deepgram_client import transcribe
from src.stt.options import TranscriptionOptions, parse_options
from src.transcript import process_response
from src.transcript.models import TranscriptionResult

logger = logging.getLogger("voicescribe.pipeline")


def run_transcription(
    audio_bytes: bytes,
    filename: str,
    content_type: str | None,
    raw_options: str | dict[str, Any] | None,
    client: Any,
    settings: Settings,
) -> TranscriptionResult:
    """
    Transcribe one uploaded file end to end.

    Args:
        audio_bytes:  Raw uploaded bytes.
        filename:     Client-side filename (used for the extension check).
        content_type: Declared MIME type of the upload, if any.
        raw_options:  The client's ``options`` JSON (string or dict).
        client:       Deepgram client.
        settings:     Service settings (limits, defaults, segmentation).

    Returns:
        The assembled TranscriptionResult.

    Raises:
        AudioValidationError: Upload rejected.
        InvalidOptionsError:  Options have values of the wrong type.
        TranscriptionError:   Deepgram call failed.
        MalformedResponse:    Deepgram returned no usable transcript.
    """
    t0 = time.perf_counter()

    # ------------------------------------------------------------------
    # Step 1: Validate the upload
    # ------------------------------------------------------------------
    validate_upload(filename, content_type, audio_bytes, settings.max_upload_bytes)
    logger.info(
        "Step 1 complete: upload accepted (%s, %.2f KB).",
        filename, len(audio_bytes) / 1024,
    )

    # ------------------------------------------------------------------
    # Step 2: Resolve options against service defaults
    # ------------------------------------------------------------------
    defaults = TranscriptionOptions(model=settings.deepgram_model)
    options = parse_options(raw_options, defaults=defaults)
    logger.info("Step 2 complete: options resolved %s.", options)

    # ------------------------------------------------------------------
    # Step 3: Transcribe with Deepgram
    # ------------------------------------------------------------------
    payload = transcribe(audio_bytes, options, client)
    t1 = time.perf_counter()
    logger.info("Step 3 complete: Deepgram responded in %.2fs.", t1 - t0)

    # ------------------------------------------------------------------
    # Step 4: Post-process into paragraphs / speaker turns
    # ------------------------------------------------------------------
    result = process_response(payload, options, settings.segmenter)
    logger.info(
        "Step 4 complete: transcription finished in %.2fs.",
        time.perf_counter() - t0,
    )
    return result

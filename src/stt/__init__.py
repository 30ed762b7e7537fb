# src/stt/__init__.py
# ====================
# Speech-to-Text Layer — VoiceScribe
#
# Pipeline:
#   1. Parse the client's transcription options
#   2. Send the uploaded audio to Deepgram (retrying transient failures)
#   3. Hand the raw payload to src.transcript for post-processing
#
# Public API:
#   build_client(api_key)                       → DeepgramClient
#   transcribe(audio_bytes, options, client)    → dict payload
#   parse_options(raw)                          → TranscriptionOptions

from src.stt.deepgram_client import (  # noqa: F401
    TranscriptionError,
    build_client,
    transcribe,
)
from src.stt.options import (  # noqa: F401
    InvalidOptionsError,
    TranscriptionOptions,
    parse_options,
)

__all__ = [
    "build_client",
    "transcribe",
    "parse_options",
    "TranscriptionError",
    "TranscriptionOptions",
    "InvalidOptionsError",
]

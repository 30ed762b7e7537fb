# src/audio/__init__.py
# ======================
# Audio Upload Layer — VoiceScribe
#
# Responsibility:
#   - Validate uploaded audio (extension, content type, emptiness, size)
#   - Audio bytes are forwarded to Deepgram unchanged

from src.audio.validator import (  # noqa: F401
    AudioTooLargeError,
    AudioValidationError,
    validate_byte_count,
    validate_upload,
)

"""
src/audio/validator.py
=======================
Upload Validator — VoiceScribe

Responsibility:
    - Validate the uploaded file's extension and declared content type
    - Reject empty uploads
    - Enforce the upload size limit (MAX_UPLOAD_MB, 50 MB by default)

Audio is forwarded to Deepgram as uploaded; Deepgram decodes the container
itself, so no transcoding happens here.

This module does NOT:
    - Decode, resample or inspect audio samples
    - Call any external API
"""

import os

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ALLOWED_EXTENSIONS = {
    ".wav", ".mp3", ".m4a", ".ogg", ".oga", ".flac", ".webm", ".aac", ".mp4",
}

# Browsers sometimes send this for files they cannot classify.
_GENERIC_CONTENT_TYPES = {"application/octet-stream"}

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AudioValidationError(Exception):
    """Raised when the uploaded audio file fails validation."""
    pass


class AudioTooLargeError(AudioValidationError):
    """Raised when the uploaded file exceeds the size limit."""
    pass


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_extension(filename: str) -> None:
    """
    Check that the file extension is a supported audio container.

    Raises:
        AudioValidationError: If the filename is missing or the extension
            is not allowed.
    """
    if not filename:
        raise AudioValidationError("Filename is missing.")

    ext = os.path.splitext(filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise AudioValidationError(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )


def validate_content_type(content_type: str | None) -> None:
    """
    Check that the declared content type is audio.

    A missing or generic content type is accepted; the extension check
    already covers those uploads.

    Raises:
        AudioValidationError: If a non-audio content type is declared.
    """
    if not content_type:
        return
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in _GENERIC_CONTENT_TYPES:
        return
    if not media_type.startswith("audio/") and media_type not in ("video/mp4", "video/webm"):
        raise AudioValidationError("Only audio files are allowed.")


def validate_not_empty(audio_bytes: bytes) -> None:
    """
    Check that the uploaded file is not empty (zero bytes).

    Raises:
        AudioValidationError: If the file has no content.
    """
    if not audio_bytes:
        raise AudioValidationError("Audio file is empty.")


def validate_size(audio_bytes: bytes, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    """
    Check that the upload does not exceed ``max_bytes``.

    Raises:
        AudioTooLargeError: If the file is too large.
    """
    validate_byte_count(len(audio_bytes), max_bytes)


def validate_byte_count(size: int, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    """Size check on a byte count, for uploads that are still being read."""
    if size > max_bytes:
        raise AudioTooLargeError(
            f"Audio file is {size / (1024 * 1024):.1f} MB; "
            f"the limit is {max_bytes / (1024 * 1024):.0f} MB."
        )


def validate_upload(
    filename: str,
    content_type: str | None,
    audio_bytes: bytes,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """
    Run every upload check in order: extension, content type, emptiness, size.

    Raises:
        AudioValidationError: On the first failing check.
    """
    validate_extension(filename)
    validate_content_type(content_type)
    validate_not_empty(audio_bytes)
    validate_size(audio_bytes, max_bytes)

"""
src/stt/options.py
===================
Transcription Options — VoiceScribe

Responsibility:
    - Define the options a client may send with an upload
    - Parse the JSON ``options`` form field (camelCase or snake_case keys)
    - Translate options into Deepgram request keyword arguments

Invalid JSON is tolerated: the defaults are used and a warning is logged.
A well-formed object with wrongly typed values is rejected.
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from typing import Any

logger = logging.getLogger("voicescribe.stt.options")

DEFAULT_MODEL = "nova-2"

# Client value meaning "let the vendor detect the language"
AUTO_LANGUAGE = "auto"

_CAMEL_CASE_ALIASES: dict[str, str] = {
    "detectLanguage": "detect_language",
    "smartFormat": "smart_format",
}


class InvalidOptionsError(ValueError):
    """Raised when transcription options have invalid values."""
    pass


@dataclass(frozen=True)
class TranscriptionOptions:
    """Options forwarded to the transcription vendor and post-processing."""

    model: str = DEFAULT_MODEL
    language: str | None = None
    detect_language: bool = True
    smart_format: bool = True
    punctuate: bool = True
    numerals: bool = True
    diarize: bool = False
    paragraphs: bool = True

    @property
    def detects_language(self) -> bool:
        """True when the vendor should detect the language itself."""
        return self.detect_language or not self.language or self.language == AUTO_LANGUAGE

    def to_deepgram_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``listen.v1.media.transcribe_file``."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "smart_format": self.smart_format,
            "punctuate": self.punctuate,
            "numerals": self.numerals,
            "diarize": self.diarize,
        }
        if self.detects_language:
            kwargs["detect_language"] = True
        else:
            kwargs["language"] = self.language
        return kwargs


_FIELD_TYPES: dict[str, type] = {
    f.name: (str if f.name in ("model", "language") else bool)
    for f in fields(TranscriptionOptions)
}


def parse_options(
    raw: str | dict[str, Any] | None,
    defaults: TranscriptionOptions | None = None,
) -> TranscriptionOptions:
    """
    Build ``TranscriptionOptions`` from the client's ``options`` field.

    Args:
        raw:      JSON string, already-decoded dict, or None.
        defaults: Base options to override (service defaults when omitted).

    Returns:
        TranscriptionOptions with recognised keys applied.

    Raises:
        InvalidOptionsError: If a recognised key has a value of the wrong type.
    """
    base = defaults or TranscriptionOptions()
    if raw is None or raw == "":
        return base

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to parse transcription options, using defaults.")
            return base
    else:
        data = raw

    if not isinstance(data, dict):
        logger.warning(
            "Transcription options must be a JSON object, got %s — using defaults.",
            type(data).__name__,
        )
        return base

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_CASE_ALIASES.get(key, key)
        expected = _FIELD_TYPES.get(name)
        if expected is None:
            logger.debug("Ignoring unknown transcription option %r.", key)
            continue

        if name == "language" and value is None:
            overrides[name] = None
            continue

        if not isinstance(value, expected):
            raise InvalidOptionsError(
                f"Option {key!r} must be {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        overrides[name] = value.strip() if isinstance(value, str) else value

    if overrides.get("model") == "":
        raise InvalidOptionsError("Option 'model' must not be empty")

    options = replace(base, **overrides)
    # An explicit language other than "auto" switches detection off unless asked for
    if "language" in overrides and "detect_language" not in overrides:
        language = options.language
        options = replace(
            options,
            detect_language=not language or language == AUTO_LANGUAGE,
        )
    return options

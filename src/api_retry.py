"""
src/api_retry.py
=================
Shared vendor API retry utility — VoiceScribe

Wraps a single vendor call (Deepgram transcription, OpenAI chat completion)
and retries it on transient failures (429 rate-limit, 5xx server errors,
timeouts and connection errors) with exponential back-off.

Usage::

    from src.api_retry import call_with_retry, chat_completions_with_retry

    payload = call_with_retry(
        client.listen.v1.media.transcribe_file,
        request=audio_bytes,
        model="nova-2",
        label="Deepgram",
    )

    response = chat_completions_with_retry(
        client,
        model="gpt-4o",
        messages=[...],
    )

This module does NOT:
    - Create or manage vendor client instances
    - Interpret the vendor response
    - Retry inside the transcript post-processing core
"""

import logging
import time
from typing import Any, Callable

logger = logging.getLogger("voicescribe.api_retry")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MAX_RETRIES: int = 3          # total attempts = MAX_RETRIES + 1 (initial)
BASE_DELAY: float = 1.0       # seconds — first back-off delay
MAX_DELAY: float = 30.0       # cap so we don't wait forever
BACKOFF_FACTOR: float = 2.0   # exponential multiplier

# HTTP status codes worth retrying on
_RETRYABLE_STATUS_CODES: set[int] = {429, 500, 502, 503, 504}

# Exception class names raised by the vendor SDKs / httpx for transient faults
_RETRYABLE_EXCEPTION_NAMES: set[str] = {
    "RateLimitError",
    "APITimeoutError",
    "APIConnectionError",
    "TimeoutException",
    "ConnectTimeout",
    "ReadTimeout",
    "ConnectError",
    "RemoteProtocolError",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_retryable(exc: Exception) -> bool:
    """Return True if the exception is a transient vendor error."""
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True

    if type(exc).__name__ in _RETRYABLE_EXCEPTION_NAMES:
        return True

    # openai.APIStatusError / deepgram ApiError carry a status code
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status in _RETRYABLE_STATUS_CODES

    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def call_with_retry(
    func: Callable[..., Any],
    *args: Any,
    label: str = "Vendor",
    sleep: Callable[[float], None] | None = None,
    **kwargs: Any,
) -> Any:
    """
    Call ``func(*args, **kwargs)`` with automatic retry.

    Retries up to ``MAX_RETRIES`` times on rate-limit (429), server
    errors (5xx) and connection problems using exponential back-off.
    Non-retryable errors are re-raised immediately.

    Args:
        func:   The vendor call to make.
        label:  Name used in log lines ("Deepgram", "OpenAI").
        sleep:  Sleep function; ``time.sleep`` when omitted.

    Returns:
        Whatever ``func`` returns.

    Raises:
        The last exception if all retries are exhausted.
    """
    last_exc: Exception | None = None
    delay = BASE_DELAY

    for attempt in range(MAX_RETRIES + 1):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            last_exc = exc

            if not _is_retryable(exc):
                logger.warning(
                    "%s call failed with non-retryable error: %s", label, exc,
                )
                raise

            if attempt < MAX_RETRIES:
                logger.warning(
                    "%s call failed (attempt %d/%d): %s — retrying in %.1fs",
                    label,
                    attempt + 1,
                    MAX_RETRIES + 1,
                    exc,
                    delay,
                )
                (sleep or time.sleep)(delay)
                delay = min(delay * BACKOFF_FACTOR, MAX_DELAY)
            else:
                logger.error(
                    "%s call failed after %d attempts: %s",
                    label,
                    MAX_RETRIES + 1,
                    exc,
                )

    # All retries exhausted
    raise last_exc  # type: ignore[misc]


def chat_completions_with_retry(client: Any, **kwargs: Any) -> Any:
    """Call ``client.chat.completions.create(**kwargs)`` with retry."""
    return call_with_retry(
        client.chat.completions.create, label="OpenAI", **kwargs
    )

"""
src/analysis/insights.py
=========================
Transcript Analysis — VoiceScribe

Responsibility:
    - Send a finished transcript to OpenAI (chat completions, JSON mode)
    - Produce a short summary, up to five key points, and the main topics
      with an importance score from 1 to 10
    - Validate the model output before it reaches the client

The summary and key points are written in the transcript's own language.

This module does NOT:
    - Transcribe audio or post-process the transcript
    - Store results
    - Fall back to a template when OpenAI fails (the caller gets an error)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from src.api_retry import chat_completions_with_retry

logger = logging.getLogger("voicescribe.analysis.insights")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_MODEL = "gpt-4o"

MAX_KEY_POINTS = 5
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10

# Very long transcripts are truncated before being sent to the model.
MAX_TRANSCRIPT_CHARS = 60_000


# ---------------------------------------------------------------------------
# Exceptions & data types
# ---------------------------------------------------------------------------


class AnalysisError(RuntimeError):
    """Raised when the transcript could not be analysed."""
    pass


@dataclass(frozen=True)
class Topic:
    topic: str
    importance: int


@dataclass(frozen=True)
class TranscriptInsights:
    """Summary, key points and weighted topics for one transcript."""

    summary: str
    key_points: tuple[str, ...]
    topics: tuple[Topic, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "key_points": list(self.key_points),
            "topics": [
                {"topic": t.topic, "importance": t.importance} for t in self.topics
            ],
        }


# ---------------------------------------------------------------------------
# OpenAI prompt
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT: str = (
    "You analyse transcripts of recorded speech (meetings, interviews, "
    "lectures, calls).\n\n"
    "RULES:\n"
    "- You MUST return ONLY a valid JSON object with exactly three keys: "
    '"summary", "keyPoints" and "topics".\n'
    '- "summary" is a brief summary of 2-3 sentences.\n'
    '- "keyPoints" is a list of at most 5 short strings.\n'
    '- "topics" is a list of objects {"topic": string, "importance": integer} '
    "where importance is from 1 (minor) to 10 (central).\n"
    "- Write the summary, key points and topics in the same language as "
    "the transcript.\n"
    "- Do NOT invent facts that are not in the transcript.\n"
)


def _build_user_message(text: str) -> str:
    if len(text) > MAX_TRANSCRIPT_CHARS:
        logger.warning(
            "Transcript has %d chars; truncating to %d for analysis.",
            len(text), MAX_TRANSCRIPT_CHARS,
        )
        text = text[:MAX_TRANSCRIPT_CHARS]
    return f"Transcript:\n{text}"


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_insights_response(raw: str) -> TranscriptInsights:
    """
    Parse and validate the OpenAI response.

    Key points beyond ``MAX_KEY_POINTS`` are dropped and importance values
    are clamped into range; anything structurally wrong is rejected.

    Raises:
        ValueError: If the response is not valid JSON or misses fields.
    """
    try:
        parsed = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"OpenAI response is not valid JSON: {raw!r}") from exc

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected JSON object, got {type(parsed).__name__}")

    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise ValueError("Response is missing a non-empty 'summary'")

    key_points = parsed.get("keyPoints", parsed.get("key_points", []))
    if not isinstance(key_points, list):
        raise ValueError(
            f"'keyPoints' must be a list, got {type(key_points).__name__}"
        )
    points = tuple(
        str(p).strip() for p in key_points if isinstance(p, str) and p.strip()
    )[:MAX_KEY_POINTS]

    raw_topics = parsed.get("topics", [])
    if not isinstance(raw_topics, list):
        raise ValueError(
            f"'topics' must be a list, got {type(raw_topics).__name__}"
        )

    topics: list[Topic] = []
    for item in raw_topics:
        if not isinstance(item, dict):
            raise ValueError(f"Topic must be an object, got {type(item).__name__}")
        name = item.get("topic")
        importance = item.get("importance")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Topic is missing a 'topic' name")
        if isinstance(importance, bool) or not isinstance(importance, (int, float)):
            raise ValueError(
                f"Topic importance must be a number, got {type(importance).__name__}"
            )
        clamped = max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, round(importance)))
        topics.append(Topic(topic=name.strip(), importance=int(clamped)))

    return TranscriptInsights(
        summary=summary.strip(),
        key_points=points,
        topics=tuple(topics),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_client(api_key: str | None) -> Any:
    """
    Construct an ``openai.OpenAI`` client.

    Raises:
        EnvironmentError: If the API key is missing.
    """
    if not api_key:
        raise EnvironmentError("OPENAI_API_KEY not set")

    from openai import OpenAI

    return OpenAI(api_key=api_key)


def analyze_transcript(
    text: str,
    client: Any,
    model: str = DEFAULT_MODEL,
) -> TranscriptInsights:
    """
    Summarise a transcript and extract key points and topics.

    Args:
        text:   Transcript text (plain, paragraph or speaker view).
        client: An ``openai.OpenAI`` client (or compatible test double).
        model:  Chat model name.

    Returns:
        Validated TranscriptInsights.

    Raises:
        ValueError:    If ``text`` is empty.
        AnalysisError: If the API call fails or returns unusable output.
    """
    if not text or not text.strip():
        raise ValueError("Transcript text is empty.")

    logger.info("Analysing transcript (%d chars) with %s.", len(text), model)

    try:
        response = chat_completions_with_retry(
            client,
            model=model,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(text)},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )
    except Exception as exc:
        raise AnalysisError(f"Failed to process transcription with AI: {exc}") from exc

    content = response.choices[0].message.content
    if not content:
        raise AnalysisError("No content in OpenAI response.")

    try:
        insights = _parse_insights_response(content)
    except ValueError as exc:
        logger.warning("Discarding unusable analysis response: %s", exc)
        raise AnalysisError(f"Unusable analysis response: {exc}") from exc

    logger.info(
        "Analysis complete: %d key points, %d topics.",
        len(insights.key_points), len(insights.topics),
    )
    return insights

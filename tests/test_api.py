"""
tests/test_api.py
==================
Integration Layer Tests — Upload Validation, Settings, Pipeline, HTTP API

Tests verify:
    1. Upload validation accepts audio and rejects everything else
    2. Settings are read from the environment with defaults
    3. run_transcription chains validation → Deepgram → post-processing
    4. HTTP endpoints map domain errors to status codes

All tests are OFFLINE — Deepgram and OpenAI clients are mocked and the
FastAPI dependencies are overridden.
"""

import asyncio
import json
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fastapi.testclient import TestClient

from src.api.upload import (
    _read_upload,
    app,
    get_deepgram_client,
    get_openai_client,
    get_settings,
)
from src.audio.validator import (
    AudioTooLargeError,
    AudioValidationError,
    validate_content_type,
    validate_extension,
    validate_upload,
)
from src.config import Settings, load_cors_origins, load_settings
from src.pipeline import run_transcription
from src.stt.deepgram_client import TranscriptionError
from src.transcript.normalizer import MalformedResponse
from src.transcript.paragraph_segmenter import SegmenterConfig


# ===================================================================
# Test fixtures
# ===================================================================

AUDIO = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 64


def _settings(**overrides):
    values = dict(
        deepgram_api_key="dg-test",
        deepgram_model="nova-2",
        openai_api_key="sk-test",
        openai_model="gpt-4o",
        segmenter=SegmenterConfig(pause_threshold_sec=1.5, min_words_per_paragraph=3),
        max_upload_bytes=1024 * 1024,
        cors_allow_origins=("*",),
    )
    values.update(overrides)
    return Settings(**values)


def _payload(transcript="Good morning all. Let us begin now.", diarized=True):
    texts = transcript.split()
    words = []
    t = 0.0
    for i, text in enumerate(texts):
        entry = {"word": text.lower().strip("."), "punctuated_word": text,
                 "start": t, "end": t + 0.3}
        if diarized:
            entry["speaker"] = 0 if i < 3 else 1
        words.append(entry)
        # Long pause after "all."
        t += 0.3 + (2.0 if text == "all." else 0.1)
    return {
        "metadata": {"duration": 6.0},
        "results": {"channels": [{
            "detected_language": "en",
            "alternatives": [{"transcript": transcript, "confidence": 0.95, "words": words}],
        }]},
    }


def _mock_deepgram(return_value=None, side_effect=None):
    client = MagicMock()
    client.listen.v1.media.transcribe_file.return_value = return_value
    client.listen.v1.media.transcribe_file.side_effect = side_effect
    return client


def _mock_openai(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    client.chat.completions.create.return_value = MagicMock(
        choices=[MagicMock(message=message)]
    )
    return client


# ===================================================================
# Upload validation
# ===================================================================


class TestUploadValidation(unittest.TestCase):

    def test_accepts_common_audio(self):
        for name in ("a.wav", "b.MP3", "c.m4a", "d.ogg", "e.webm"):
            with self.subTest(name=name):
                validate_extension(name)

    def test_rejects_other_extensions(self):
        for name in ("notes.txt", "archive.zip", "noext", ""):
            with self.subTest(name=name):
                with self.assertRaises(AudioValidationError):
                    validate_extension(name)

    def test_content_type(self):
        validate_content_type("audio/mpeg")
        validate_content_type("audio/wav; codecs=1")
        validate_content_type("application/octet-stream")
        validate_content_type(None)
        with self.assertRaises(AudioValidationError):
            validate_content_type("text/plain")

    def test_empty_rejected(self):
        with self.assertRaises(AudioValidationError):
            validate_upload("a.wav", "audio/wav", b"")

    def test_too_large_rejected(self):
        with self.assertRaises(AudioTooLargeError):
            validate_upload("a.wav", "audio/wav", b"x" * 11, max_bytes=10)


# ===================================================================
# Settings
# ===================================================================


class TestLoadSettings(unittest.TestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = load_settings()
        self.assertIsNone(settings.deepgram_api_key)
        self.assertEqual(settings.deepgram_model, "nova-2")
        self.assertEqual(settings.openai_model, "gpt-4o")
        self.assertEqual(settings.segmenter, SegmenterConfig())
        self.assertEqual(settings.max_upload_bytes, 50 * 1024 * 1024)
        self.assertEqual(settings.cors_allow_origins, ("*",))

    @patch.dict(os.environ, {
        "DEEPGRAM_API_KEY": "dg",
        "PARAGRAPH_PAUSE_THRESHOLD_SEC": "2.5",
        "PARAGRAPH_MIN_WORDS": "15",
        "MAX_UPLOAD_MB": "10",
        "CORS_ALLOW_ORIGINS": "https://a.example, https://b.example",
    }, clear=True)
    def test_overrides(self):
        settings = load_settings()
        self.assertEqual(settings.deepgram_api_key, "dg")
        self.assertEqual(settings.segmenter, SegmenterConfig(2.5, 15))
        self.assertEqual(settings.max_upload_bytes, 10 * 1024 * 1024)
        self.assertEqual(
            settings.cors_allow_origins, ("https://a.example", "https://b.example")
        )

    @patch.dict(os.environ, {"PARAGRAPH_MIN_WORDS": "many"}, clear=True)
    def test_malformed_number_raises(self):
        with self.assertRaises(ValueError):
            load_settings()

    @patch.dict(os.environ, {"MAX_UPLOAD_MB": "0"}, clear=True)
    def test_non_positive_upload_limit_raises(self):
        with self.assertRaises(ValueError):
            load_settings()

    @patch.dict(os.environ, {
        "PARAGRAPH_MIN_WORDS": "many",
        "CORS_ALLOW_ORIGINS": "https://a.example",
    }, clear=True)
    def test_cors_origins_ignore_malformed_numbers(self):
        self.assertEqual(load_cors_origins(), ("https://a.example",))

    @patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": " , "}, clear=True)
    def test_blank_cors_origins_default_to_wildcard(self):
        self.assertEqual(load_cors_origins(), ("*",))


# ===================================================================
# Pipeline
# ===================================================================


class TestRunTranscription(unittest.TestCase):

    def test_full_chain(self):
        client = _mock_deepgram(return_value=_payload())

        result = run_transcription(
            AUDIO, "meeting.wav", "audio/wav", '{"diarize": true}', client, _settings()
        )

        self.assertEqual(result.transcript, "Good morning all. Let us begin now.")
        self.assertEqual(
            [p.text for p in result.paragraphs],
            ["Good morning all.", "Let us begin now."],
        )
        self.assertEqual([t.speaker_index for t in result.speaker_turns], [0, 1])
        kwargs = client.listen.v1.media.transcribe_file.call_args.kwargs
        self.assertTrue(kwargs["diarize"])
        self.assertEqual(kwargs["model"], "nova-2")

    def test_configured_model_is_default(self):
        client = _mock_deepgram(return_value=_payload())
        run_transcription(AUDIO, "a.wav", None, None, client, _settings(deepgram_model="nova-3"))
        kwargs = client.listen.v1.media.transcribe_file.call_args.kwargs
        self.assertEqual(kwargs["model"], "nova-3")

    def test_invalid_upload_never_reaches_vendor(self):
        client = _mock_deepgram(return_value=_payload())
        with self.assertRaises(AudioValidationError):
            run_transcription(AUDIO, "a.txt", "text/plain", None, client, _settings())
        client.listen.v1.media.transcribe_file.assert_not_called()

    def test_malformed_payload_propagates(self):
        client = _mock_deepgram(return_value=_payload(transcript=""))
        with self.assertRaises(MalformedResponse):
            run_transcription(AUDIO, "a.wav", None, None, client, _settings())


# ===================================================================
# HTTP API
# ===================================================================


class _ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.settings = _settings()
        self.deepgram = _mock_deepgram(return_value=_payload())
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_deepgram_client] = lambda: self.deepgram
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestTranscribeEndpoint(_ApiTestCase):

    def _post(self, name="call.wav", content=AUDIO, content_type="audio/wav", options=None):
        data = {} if options is None else {"options": options}
        return self.client.post(
            "/api/transcribe",
            files={"audio": (name, content, content_type)},
            data=data,
        )

    def test_success(self):
        response = self._post(options=json.dumps({"diarize": True}))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["detected_language"], "en")
        self.assertEqual(body["duration_seconds"], 6.0)
        self.assertEqual(len(body["paragraphs"]), 2)
        self.assertEqual(body["speaker_turns"][1]["speaker_index"], 1)

    def test_no_diarization_returns_null_speaker_turns(self):
        response = self._post()
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["speaker_turns"])

    def test_missing_file(self):
        response = self.client.post("/api/transcribe", data={"options": "{}"})
        self.assertEqual(response.status_code, 400)

    def test_unsupported_file(self):
        response = self._post(name="notes.txt", content_type="text/plain")
        self.assertEqual(response.status_code, 422)

    def test_too_large(self):
        self.settings = _settings(max_upload_bytes=16)
        response = self._post()
        self.assertEqual(response.status_code, 413)

    def test_bad_option_type(self):
        response = self._post(options=json.dumps({"diarize": "yes"}))
        self.assertEqual(response.status_code, 400)

    def test_empty_transcript_is_bad_gateway(self):
        self.deepgram.listen.v1.media.transcribe_file.return_value = _payload(transcript="")
        self.assertEqual(self._post().status_code, 502)

    def test_malformed_word_timing_is_bad_gateway(self):
        payload = _payload()
        payload["results"]["channels"][0]["alternatives"][0]["words"][0]["start"] = "soon"
        self.deepgram.listen.v1.media.transcribe_file.return_value = payload
        self.assertEqual(self._post().status_code, 502)

    def test_vendor_failure(self):
        self.deepgram.listen.v1.media.transcribe_file.side_effect = ValueError("bad key")
        response = self._post()
        self.assertEqual(response.status_code, 500)
        self.assertIn("bad key", response.json()["detail"])

    def test_missing_deepgram_key(self):
        del app.dependency_overrides[get_deepgram_client]
        self.settings = _settings(deepgram_api_key=None)
        self.assertEqual(self._post().status_code, 500)


class TestAnalyzeEndpoint(_ApiTestCase):

    def test_success(self):
        openai_client = _mock_openai(json.dumps({
            "summary": "A short greeting.",
            "keyPoints": ["Meeting starts"],
            "topics": [{"topic": "Greeting", "importance": 4}],
        }))
        app.dependency_overrides[get_openai_client] = lambda: openai_client

        response = self.client.post("/api/analyze", json={"text": "Good morning all."})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["topics"], [{"topic": "Greeting", "importance": 4}])

    def test_empty_text(self):
        app.dependency_overrides[get_openai_client] = lambda: _mock_openai("{}")
        response = self.client.post("/api/analyze", json={"text": "  "})
        self.assertEqual(response.status_code, 422)

    def test_model_failure(self):
        app.dependency_overrides[get_openai_client] = lambda: _mock_openai("not json")
        response = self.client.post("/api/analyze", json={"text": "Hello."})
        self.assertEqual(response.status_code, 502)

    def test_not_configured(self):
        self.settings = _settings(openai_api_key=None)
        response = self.client.post("/api/analyze", json={"text": "Hello."})
        self.assertEqual(response.status_code, 503)


class TestExportEndpoint(_ApiTestCase):

    RESULT = {
        "transcript": "Hi. Hello.",
        "confidence": 0.9,
        "detected_language": "en",
        "duration_seconds": 2.0,
        "paragraphs": [{"text": "Hi."}, {"text": "Hello."}],
        "speaker_turns": [
            {"speaker_index": 0, "text": "Hi."},
            {"speaker_index": 1, "text": "Hello."},
        ],
    }

    def test_speakers_view(self):
        response = self.client.post("/api/export/txt", json={
            "result": self.RESULT, "view": "speakers", "title": "Weekly sync",
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Speaker 1:\nHi.\n\nSpeaker 2:\nHello.")
        self.assertTrue(response.headers["content-type"].startswith("text/plain"))
        self.assertIn('filename="Weekly sync.txt"', response.headers["content-disposition"])

    def test_non_ascii_title(self):
        response = self.client.post("/api/export/txt", json={
            "result": self.RESULT, "title": "Встреча",
        })
        disposition = response.headers["content-disposition"]
        self.assertIn('filename="transcription.txt"', disposition)
        self.assertIn("filename*=UTF-8''%D0%92", disposition)

    def test_unknown_view(self):
        response = self.client.post("/api/export/txt", json={
            "result": self.RESULT, "view": "docx",
        })
        self.assertEqual(response.status_code, 422)

    def test_malformed_result(self):
        response = self.client.post("/api/export/txt", json={"result": {"paragraphs": []}})
        self.assertEqual(response.status_code, 422)


class _ChunkedUpload:
    """Upload double that serves fixed chunks and counts reads."""

    def __init__(self, chunks, size=None):
        self.size = size
        self._chunks = list(chunks)
        self.reads = 0

    async def read(self, size=-1):
        self.reads += 1
        return self._chunks.pop(0) if self._chunks else b""


class TestReadUpload(unittest.TestCase):

    def test_reads_all_chunks_within_limit(self):
        upload = _ChunkedUpload([b"ab", b"cd"])
        self.assertEqual(asyncio.run(_read_upload(upload, 10)), b"abcd")

    def test_declared_size_rejected_before_reading(self):
        upload = _ChunkedUpload([b"x" * 8], size=2048)
        with self.assertRaises(AudioTooLargeError):
            asyncio.run(_read_upload(upload, 1024))
        self.assertEqual(upload.reads, 0)

    def test_stops_reading_once_limit_passed(self):
        upload = _ChunkedUpload([b"x" * 6, b"x" * 6, b"x" * 6, b"x" * 6])
        with self.assertRaises(AudioTooLargeError):
            asyncio.run(_read_upload(upload, 10))
        self.assertEqual(upload.reads, 2)


class TestHealthEndpoint(_ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/api/health").json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()

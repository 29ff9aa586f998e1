"""
Google Speech-to-Text service wrapper.

This module encapsulates interaction with the Google Cloud Speech API.  A
recognition is a long-running operation: :meth:`TranscriptionClient.submit`
starts it for a Cloud Storage URI and :meth:`TranscriptionClient.wait`
blocks until the operation reaches a terminal state.  The response is
reduced to a :class:`Transcription` holding the full text and a flat list
of word timings.

Usage::

    from videoscribe.stt_service import TranscriptionClient

    result = TranscriptionClient().transcribe("gs://my-bucket/extracted_audio/u1/clip.wav")
    print(result.transcript)
"""

import logging
import os
from concurrent import futures
from typing import List, Optional

from google.api_core import exceptions
from google.cloud import speech_v1p1beta1 as speech

from .durations import to_seconds
from .errors import RecognitionError
from .models import Transcription, WordTiming

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16_000
LANGUAGE_CODE = "en-US"
RECOGNITION_MODEL = "video"


def recognition_timeout() -> Optional[float]:
    """Return the ``RECOGNITION_TIMEOUT`` deadline in seconds, if any.

    A malformed value is logged and ignored, leaving the wait unbounded.
    """
    value = os.environ.get("RECOGNITION_TIMEOUT")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring invalid RECOGNITION_TIMEOUT %r", value)
        return None


def _top_alternative(result):
    alternatives = result.alternatives
    return alternatives[0] if alternatives else None


def parse_response(response) -> Transcription:
    """Flatten a ``LongRunningRecognizeResponse`` into a :class:`Transcription`.

    The first alternative of every result is used.  Transcripts of
    consecutive results are joined with newlines and their words are
    concatenated in order.
    """
    # Raw protobuf keeps Duration fields as seconds/nanos pairs.
    response = getattr(response, "_pb", response)
    results = list(response.results)
    lines: List[str] = []
    words: List[WordTiming] = []
    for result in results:
        alternative = _top_alternative(result)
        if alternative is None:
            lines.append("")
            continue
        lines.append(alternative.transcript or "")
        for wi in alternative.words:
            words.append(
                WordTiming(
                    word=wi.word or "",
                    start_time_sec=to_seconds(wi.start_time),
                    end_time_sec=to_seconds(wi.end_time),
                )
            )
    return Transcription(transcript="\n".join(lines), word_timings=words, result_count=len(results))


class TranscriptionClient:
    """Long-running recognition against audio staged in Cloud Storage."""

    def __init__(self, client=None) -> None:
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = speech.SpeechClient()
        return self._client

    @staticmethod
    def build_config(sample_rate_hz: int = TARGET_SAMPLE_RATE) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate_hz,
            language_code=LANGUAGE_CODE,
            enable_word_time_offsets=True,
            enable_automatic_punctuation=True,
            model=RECOGNITION_MODEL,
        )

    def submit(self, gcs_uri: str, sample_rate_hz: int = TARGET_SAMPLE_RATE):
        """Start a long-running recognition and return its operation.

        Raises:
            RecognitionError: If the API rejects the request.
        """
        config = self.build_config(sample_rate_hz)
        audio = speech.RecognitionAudio(uri=gcs_uri)
        logger.info("[Speech API] Sending request for %s", gcs_uri)
        try:
            return self.client.long_running_recognize(config=config, audio=audio)
        except exceptions.GoogleAPIError as exc:
            raise RecognitionError(str(exc)) from exc

    def wait(self, operation, timeout: Optional[float] = None):
        """Block until ``operation`` finishes and return its response.

        Without ``timeout`` the deadline comes from :func:`recognition_timeout`;
        when neither is set the call waits for as long as the operation runs.

        Raises:
            RecognitionError: If the operation fails or the timeout expires.
        """
        if timeout is None:
            timeout = recognition_timeout()
        logger.info("[Speech API] Waiting for operation...")
        try:
            response = operation.result(timeout=timeout)
        except (exceptions.GoogleAPIError, futures.TimeoutError) as exc:
            raise RecognitionError(str(exc) or "Speech recognition timed out") from exc
        logger.info("[Speech API] Operation finished.")
        return response

    def transcribe(self, gcs_uri: str, sample_rate_hz: int = TARGET_SAMPLE_RATE) -> Transcription:
        operation = self.submit(gcs_uri, sample_rate_hz)
        transcription = parse_response(self.wait(operation))
        logger.info(
            "Transcription received (length: %d), %d words.",
            len(transcription.transcript),
            len(transcription.word_timings),
        )
        return transcription

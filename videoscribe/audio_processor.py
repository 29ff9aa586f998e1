"""
Audio extraction utilities.

This module strips the video stream from an uploaded file and writes its
audio track as the WAV format expected by the speech recogniser.  Decoding
is performed locally using the `pydub` library which in turn relies on
`ffmpeg`.  The output is 16-bit linear PCM, mono and sampled at 16 kHz to
meet Google Speech-to-Text best practices.
"""

import logging
import os

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError, CouldntEncodeError

from .errors import TransformError

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16_000
TARGET_CHANNELS = 1
# bytes per sample, i.e. 16-bit PCM
TARGET_SAMPLE_WIDTH = 2

FFMPEG_PATH = os.environ.get("FFMPEG_PATH")
if FFMPEG_PATH:
    AudioSegment.converter = FFMPEG_PATH
    logger.info("FFmpeg path set to: %s", FFMPEG_PATH)


def extract_audio(video_path: str, audio_path: str, *, target_sample_rate: int = TARGET_SAMPLE_RATE) -> None:
    """Extract the audio track of a video into a mono PCM WAV file.

    Args:
        video_path: Path to the local video file.
        audio_path: Destination of the WAV file.  A partially written file
            may be left behind on failure; the caller owns its removal.
        target_sample_rate: Desired sample rate for the output WAV.

    Raises:
        TransformError: If ffmpeg cannot decode the input or the output
            cannot be written.  The message is that of the underlying error.
    """
    logger.info("Extracting audio from %s to %s", video_path, audio_path)
    try:
        # ffmpeg decodes the container; the video stream is dropped.
        audio = AudioSegment.from_file(video_path)
        audio = (
            audio.set_channels(TARGET_CHANNELS)
            .set_frame_rate(target_sample_rate)
            .set_sample_width(TARGET_SAMPLE_WIDTH)
        )
        audio.export(audio_path, format="wav").close()
    except (CouldntDecodeError, CouldntEncodeError, OSError) as exc:
        raise TransformError(str(exc)) from exc
    logger.info("Audio extracted successfully.")

"""
Audio track extraction for the transcription consumer.

Output is a fixed contract: WAV, mono, 16 kHz, 16-bit linear PCM. The
transcription engine downstream reads exactly this, so it is not configurable.
"""

import logging
import struct
from typing import Optional

from scene_analysis.models import AudioFormat
from scene_analysis.services.errors import AudioExtractionError
from scene_analysis.services.media_toolkit import FFmpegToolkit, MediaToolkit

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1


def is_wav_payload(data: bytes) -> bool:
    return len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WAVE"


def inspect_wav(data: bytes) -> AudioFormat:
    """
    Read the `fmt ` chunk of a RIFF/WAVE payload.

    Chunk sizes are not trusted for the data chunk (ffmpeg writing to a pipe
    cannot seek back to fill them in), only for walking to `fmt `.
    """
    if not is_wav_payload(data):
        raise ValueError("Not a RIFF/WAVE payload")

    offset = 12
    while offset + 8 <= len(data):
        chunk_id = data[offset:offset + 4]
        (chunk_size,) = struct.unpack("<I", data[offset + 4:offset + 8])
        if chunk_id == b"fmt ":
            if offset + 8 + 16 > len(data):
                break
            audio_format, channels, sample_rate, _, _, bits = struct.unpack(
                "<HHIIHH", data[offset + 8:offset + 24]
            )
            return AudioFormat(
                channels=channels,
                sample_rate=sample_rate,
                bits_per_sample=bits,
                audio_format=audio_format,
            )
        offset += 8 + chunk_size + (chunk_size % 2)

    raise ValueError("WAV payload has no fmt chunk")


class AudioExtractor:
    def __init__(self, toolkit: Optional[MediaToolkit] = None):
        self.toolkit = toolkit or FFmpegToolkit()

    def extract(self, video_path: str) -> bytes:
        """Return the whole audio track as in-memory WAV bytes. Raises AudioExtractionError."""
        logger.info(f"🎵 Extracting audio from: {video_path}")
        data = self.toolkit.extract_audio(video_path)

        try:
            fmt = inspect_wav(data)
        except ValueError as e:
            raise AudioExtractionError(f"Audio extraction produced invalid WAV: {e}") from e

        expected = (PCM_FORMAT_TAG, CHANNELS, SAMPLE_RATE, BITS_PER_SAMPLE)
        actual = (fmt.audio_format, fmt.channels, fmt.sample_rate, fmt.bits_per_sample)
        if actual != expected:
            raise AudioExtractionError(
                f"Unexpected audio format {fmt.model_dump()}, expected mono {SAMPLE_RATE}Hz {BITS_PER_SAMPLE}-bit PCM"
            )

        logger.info(f"✅ Audio extracted as WAV: {len(data) / 1024 / 1024:.2f}MB")
        return data

"""
Media toolchain boundary.

Everything that touches ffmpeg/ffprobe goes through a MediaToolkit so the
pipeline services can be exercised with fakes. FFmpegToolkit is the
subprocess-backed implementation.
"""

import json
import logging
import math
import os
import re
from typing import List, Optional, Protocol

from scene_analysis.config import FFmpegConfig, get_settings
from scene_analysis.services.errors import (
    AudioExtractionError,
    DetectionError,
    FrameExtractionError,
    ProbeError,
)
from scene_analysis.services.ffmpeg_utils import FFmpegError, run_ffmpeg_capture, run_ffprobe_capture

logger = logging.getLogger(__name__)

_PTS_TIME_RE = re.compile(r"pts_time:\s*(-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)")


class MediaToolkit(Protocol):
    def probe_duration(self, video_path: str) -> float:
        ...

    def detect_scene_changes(self, video_path: str, threshold: float) -> List[float]:
        ...

    def extract_frame(self, video_path: str, timestamp: float, output_path: str, width: int, height: int) -> None:
        ...

    def extract_audio(self, video_path: str) -> bytes:
        ...


def parse_scene_change_output(text: str) -> List[float]:
    """
    Pull presentation timestamps out of ffmpeg `metadata=print` output.

    Each selected frame is reported as a line like
    ``frame:3    pts:61440   pts_time:4.8`` followed by its
    ``lavfi.scene_score=...`` line; only the pts_time values matter here.
    """
    times: List[float] = []
    for line in text.splitlines():
        match = _PTS_TIME_RE.search(line)
        if not match:
            continue
        try:
            value = float(match.group(1))
        except ValueError:
            continue
        if math.isfinite(value):
            times.append(value)
    return times


class FFmpegToolkit:
    """MediaToolkit backed by the ffmpeg/ffprobe command-line tools."""

    def __init__(self, config: Optional[FFmpegConfig] = None, jpeg_quality: Optional[int] = None):
        if config is None or jpeg_quality is None:
            settings = get_settings()
            config = config or settings.ffmpeg
            jpeg_quality = jpeg_quality if jpeg_quality is not None else settings.keyframes.jpeg_quality
        self.config = config
        self.jpeg_quality = jpeg_quality

    def _ffmpeg(self, cmd: List[str], *, timeout: float, text: bool = True):
        return run_ffmpeg_capture(
            cmd,
            check=True,
            timeout=timeout,
            text=text,
            binary=self.config.ffmpeg_binary,
            threads=self.config.threads,
        )

    def probe_duration(self, video_path: str) -> float:
        """Get the duration of a media file in seconds using ffprobe."""
        cmd = [
            self.config.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            video_path,
        ]
        try:
            result = run_ffprobe_capture(cmd, timeout=self.config.probe_timeout)
        except FFmpegError as e:
            raise ProbeError(f"Unable to probe {video_path}: {e.message}") from e

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"Unreadable ffprobe output for {video_path}") from e

        raw = (data.get("format") or {}).get("duration")
        if raw in (None, "", "N/A"):
            raise ProbeError("Unable to determine video duration")
        try:
            duration = float(raw)
        except (TypeError, ValueError) as e:
            raise ProbeError(f"Invalid duration value: {raw!r}") from e
        if not math.isfinite(duration) or duration <= 0:
            raise ProbeError(f"Invalid duration value: {raw!r}")
        return duration

    def detect_scene_changes(self, video_path: str, threshold: float) -> List[float]:
        """Run the scene-change filter and return timestamps of frames scoring above threshold."""
        cmd = [
            "-hide_banner",
            "-i", video_path,
            "-an",
            "-vf", f"select='gt(scene,{threshold})',metadata=print:file=-",
            "-f", "null",
            "-",
        ]
        try:
            result = self._ffmpeg(cmd, timeout=self.config.detect_timeout)
        except FFmpegError as e:
            raise DetectionError(f"Scene detection failed: {e.message}") from e
        return parse_scene_change_output(result.stdout or "")

    def extract_frame(self, video_path: str, timestamp: float, output_path: str, width: int, height: int) -> None:
        """Decode exactly one frame at `timestamp`, scaled to width x height, as JPEG."""
        cmd = [
            "-y",
            "-ss", f"{timestamp:.3f}",  # input seek: fast, lands on the nearest frame
            "-i", video_path,
            "-frames:v", "1",
            "-vf", f"scale={width}:{height}",
            "-q:v", str(self.jpeg_quality),
            "-loglevel", "error",
            output_path,
        ]
        try:
            self._ffmpeg(cmd, timeout=self.config.frame_timeout)
        except FFmpegError as e:
            raise FrameExtractionError(f"Frame extraction failed at {timestamp:.2f}s: {e.message}", timestamp) from e

        # Seeking past the last decodable frame exits 0 without writing anything.
        if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
            raise FrameExtractionError(f"No frame decoded at {timestamp:.2f}s", timestamp)

    def extract_audio(self, video_path: str) -> bytes:
        """Strip video and return mono 16 kHz 16-bit PCM WAV bytes streamed from stdout."""
        cmd = [
            "-hide_banner",
            "-loglevel", "error",
            "-i", video_path,
            "-vn",
            "-acodec", "pcm_s16le",
            "-ac", "1",
            "-ar", "16000",
            "-f", "wav",
            "pipe:1",
        ]
        try:
            result = self._ffmpeg(cmd, timeout=self.config.audio_timeout, text=False)
        except FFmpegError as e:
            raise AudioExtractionError(f"Audio extraction failed: {e.message}") from e
        return result.stdout or b""

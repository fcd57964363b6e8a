"""
Scene segmentation pipeline.

Fetch -> Probe -> Detect (or uniform fallback) -> Partition -> Keyframes,
with every temp file of the run deleted on the way out, success or not.
"""

import logging
import threading
from functools import lru_cache
from typing import Any, List, Mapping, Optional

from scene_analysis.config import SegmentationConfig, Settings, get_settings
from scene_analysis.models import SceneSegment
from scene_analysis.services.audio_extractor import AudioExtractor
from scene_analysis.services.keyframe_extractor import KeyframeExtractor
from scene_analysis.services.media_fetcher import MediaFetcher
from scene_analysis.services.media_toolkit import FFmpegToolkit, MediaToolkit
from scene_analysis.services.scene_detector import SceneBoundaryDetector
from scene_analysis.services.segment_partitioner import partition_segments
from scene_analysis.services.workspace import TempWorkspace, get_workspace

logger = logging.getLogger(__name__)


class SceneSegmentationService:
    """Splits a remote video into scenes with keyframes, and extracts its audio."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        toolkit: Optional[MediaToolkit] = None,
        fetcher: Optional[MediaFetcher] = None,
        workspace: Optional[TempWorkspace] = None,
    ):
        self.settings = settings or get_settings()
        self.toolkit = toolkit or FFmpegToolkit(self.settings.ffmpeg, self.settings.keyframes.jpeg_quality)
        self.fetcher = fetcher or MediaFetcher(settings=self.settings)
        if workspace is None:
            workspace = get_workspace() if settings is None else TempWorkspace(self.settings.temp_dir)
        self.workspace = workspace

        self.detector = SceneBoundaryDetector(self.toolkit)
        self.keyframe_extractor = KeyframeExtractor(self.toolkit, self.settings.keyframes)
        self.audio_extractor = AudioExtractor(self.toolkit)

        self._config = self.settings.segmentation
        self._config_lock = threading.Lock()

    @property
    def config(self) -> SegmentationConfig:
        with self._config_lock:
            return self._config

    def update_config(self, changes: Mapping[str, Any]) -> SegmentationConfig:
        """
        Merge `changes` into the live config. Takes effect on the next run.

        Raises pydantic.ValidationError (leaving the config untouched) on
        unknown fields or out-of-range values.
        """
        with self._config_lock:
            merged = {**self._config.model_dump(), **dict(changes)}
            self._config = SegmentationConfig.model_validate(merged)
            config = self._config
        logger.info(f"🔧 Scene segmentation config updated: {config.model_dump()}")
        return config

    def segment_video(self, video_url: str) -> List[SceneSegment]:
        """
        Segment the video at `video_url` into gap-free scenes with keyframes.

        Raises FetchError / ProbeError; detection and per-frame failures are
        absorbed. Temp files are removed before returning or raising.
        """
        config = self.config
        logger.info(f"🎬 Starting scene segmentation for video: {video_url}")

        with self.workspace.session() as session:
            try:
                video_path = self.fetcher.fetch(video_url, session)

                duration = self.toolkit.probe_duration(video_path)
                logger.info(f"📏 Video duration: {duration:.2f}s")

                boundaries = self.detector.detect_boundaries(video_path, duration, config)
                segments = partition_segments(boundaries, duration, config.min_scene_duration)
                logger.info(f"🎬 Created {len(segments)} scene segments")

                self.keyframe_extractor.extract(video_path, segments, config.keyframes_per_scene, session)
            except Exception as e:
                logger.error(f"❌ Scene segmentation failed: {e}")
                raise

        logger.info(f"✅ Scene segmentation complete: {len(segments)} scenes processed")
        return segments

    def extract_audio_from_video(self, video_path: str) -> bytes:
        """WAV (mono, 16 kHz, 16-bit PCM) bytes for a local video. Raises AudioExtractionError."""
        return self.audio_extractor.extract(video_path)

    def extract_audio_from_url(self, video_url: str) -> bytes:
        """Download `video_url`, extract its audio track, and clean up the download."""
        with self.workspace.session() as session:
            video_path = self.fetcher.fetch(video_url, session)
            return self.audio_extractor.extract(video_path)


@lru_cache()
def get_scene_segmentation_service() -> SceneSegmentationService:
    """Process-wide service instance."""
    return SceneSegmentationService()

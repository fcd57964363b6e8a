import logging
import math
from typing import Iterable, List, Optional

from scene_analysis.config import SegmentationConfig
from scene_analysis.services.errors import DetectionError
from scene_analysis.services.media_toolkit import FFmpegToolkit, MediaToolkit

logger = logging.getLogger(__name__)

# Uniform fallback: ~5 second slices, never more than 8.
FALLBACK_SLICE_SECONDS = 5.0
FALLBACK_MAX_SEGMENTS = 8


def normalize_boundaries(candidates: Iterable[float], duration: float, max_scenes: int) -> List[float]:
    """
    Seed with 0 and `duration`, drop out-of-range candidates, dedupe, sort and
    keep at most `max_scenes + 1` boundaries.
    """
    inside = {float(t) for t in candidates if 0.0 < t < duration}
    boundaries = sorted(inside | {0.0, float(duration)})
    return boundaries[: max_scenes + 1]


def uniform_boundaries(duration: float, max_scenes: Optional[int] = None) -> List[float]:
    """Equal-length partition into min(8, ceil(duration / 5)) segments."""
    count = max(1, min(FALLBACK_MAX_SEGMENTS, math.ceil(duration / FALLBACK_SLICE_SECONDS)))
    step = duration / count
    boundaries = [step * i for i in range(count)] + [float(duration)]
    if max_scenes is not None:
        boundaries = boundaries[: max_scenes + 1]
    return boundaries


class SceneBoundaryDetector:
    """
    Finds candidate scene cuts.

    Detection is best effort: any DetectionError is logged and replaced by the
    uniform partition, so callers always get usable boundaries.
    """

    def __init__(self, toolkit: Optional[MediaToolkit] = None):
        self.toolkit = toolkit or FFmpegToolkit()

    def detect_boundaries(self, video_path: str, duration: float, config: SegmentationConfig) -> List[float]:
        logger.info(f"🎬 Detecting scene changes with threshold: {config.scene_threshold}")
        try:
            cuts = self.toolkit.detect_scene_changes(video_path, config.scene_threshold)
        except DetectionError as e:
            boundaries = uniform_boundaries(duration, config.max_scenes_per_video)
            logger.warning(
                f"⚠️ Scene detection failed, using time-based fallback ({len(boundaries) - 1} segments): {e}"
            )
            return boundaries

        boundaries = normalize_boundaries(cuts, duration, config.max_scenes_per_video)
        logger.info(f"✅ Detected {len(boundaries) - 1} scenes: {[round(b, 2) for b in boundaries]}")
        return boundaries

import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from scene_analysis.config import KeyframeConfig, get_settings
from scene_analysis.models import Keyframe, SceneSegment
from scene_analysis.services.errors import SceneAnalysisError
from scene_analysis.services.media_toolkit import FFmpegToolkit, MediaToolkit
from scene_analysis.services.workspace import WorkspaceSession

logger = logging.getLogger(__name__)


def keyframe_timestamps(start_sec: float, end_sec: float, count: int) -> List[float]:
    """
    Interior sample points: the segment is cut into count + 1 equal intervals
    and every inner division point is used. Endpoints are never sampled.
    """
    if count <= 0 or end_sec <= start_sec:
        return []
    interval = (end_sec - start_sec) / (count + 1)
    return [start_sec + interval * i for i in range(1, count + 1)]


def to_data_uri(image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"


class KeyframeExtractor:
    """
    Extracts still frames for every scene.

    Frame jobs are independent, so they run on a bounded thread pool; results
    are put back in (scene id, frame index) order. A failed frame is logged
    and skipped, never fatal.
    """

    def __init__(self, toolkit: Optional[MediaToolkit] = None, config: Optional[KeyframeConfig] = None):
        self.toolkit = toolkit or FFmpegToolkit()
        self.config = config or get_settings().keyframes

    def extract(
        self,
        video_path: str,
        segments: List[SceneSegment],
        keyframes_per_scene: int,
        session: WorkspaceSession,
    ) -> List[SceneSegment]:
        logger.info(f"🎬 Extracting keyframes for {len(segments)} scenes")

        jobs: List[Tuple[SceneSegment, int, float]] = []
        for segment in segments:
            timestamps = keyframe_timestamps(segment.start_sec, segment.end_sec, keyframes_per_scene)
            for index, timestamp in enumerate(timestamps, start=1):
                jobs.append((segment, index, timestamp))

        workers = max(1, min(self.config.max_workers, len(jobs) or 1))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._extract_one, video_path, segment.id, index, timestamp, session)
                for segment, index, timestamp in jobs
            ]
            results = [future.result() for future in futures]

        for segment in segments:
            segment.keyframes = []
        for (segment, _, _), keyframe in zip(jobs, results):
            if keyframe is not None:
                segment.keyframes.append(keyframe)

        extracted = sum(1 for kf in results if kf is not None)
        logger.info(f"✅ Extracted {extracted}/{len(jobs)} keyframes")
        return segments

    def _extract_one(
        self,
        video_path: str,
        scene_id: int,
        index: int,
        timestamp: float,
        session: WorkspaceSession,
    ) -> Optional[Keyframe]:
        frame_path = session.new_path(f"scene_{scene_id}_frame_{index}_{timestamp:.2f}s", ".jpg")
        try:
            self.toolkit.extract_frame(video_path, timestamp, frame_path, self.config.width, self.config.height)
            with open(frame_path, "rb") as fh:
                image_bytes = fh.read()
        except SceneAnalysisError as e:
            logger.warning(f"⚠️ Failed to extract keyframe at {timestamp:.2f}s for scene {scene_id}: {e}")
            return None
        except OSError as e:
            logger.warning(f"⚠️ Could not read keyframe {frame_path}: {e}")
            return None

        logger.debug(f"✅ Extracted keyframe at {timestamp:.2f}s for scene {scene_id}")
        return Keyframe(
            timestamp_sec=timestamp,
            image_data=to_data_uri(image_bytes),
            temp_path=frame_path,
        )

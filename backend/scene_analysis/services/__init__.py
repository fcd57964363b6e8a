"""Pipeline services for scene segmentation."""

from .errors import (
    AudioExtractionError,
    CleanupWarning,
    DetectionError,
    FetchError,
    FrameExtractionError,
    ProbeError,
    SceneAnalysisError,
)
from .scene_segmentation import SceneSegmentationService, get_scene_segmentation_service

__all__ = [
    "SceneSegmentationService",
    "get_scene_segmentation_service",
    "SceneAnalysisError",
    "FetchError",
    "ProbeError",
    "DetectionError",
    "FrameExtractionError",
    "AudioExtractionError",
    "CleanupWarning",
]

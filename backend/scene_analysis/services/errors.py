"""
Error taxonomy for the segmentation pipeline.

Fatal to a run: FetchError, ProbeError.
Recovered locally: DetectionError (uniform fallback), FrameExtractionError (frame skipped).
Fatal to its own call only: AudioExtractionError.
CleanupWarning is a log category, never raised.
"""

from typing import Optional


class SceneAnalysisError(Exception):
    """Base class for pipeline failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FetchError(SceneAnalysisError):
    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ProbeError(SceneAnalysisError):
    pass


class DetectionError(SceneAnalysisError):
    pass


class FrameExtractionError(SceneAnalysisError):
    def __init__(self, message: str, timestamp_sec: Optional[float] = None):
        super().__init__(message)
        self.timestamp_sec = timestamp_sec


class AudioExtractionError(SceneAnalysisError):
    pass


class CleanupWarning(UserWarning):
    """A temp file that could not be deleted. Reported, never raised."""

    def __init__(self, path: str, error: Optional[BaseException] = None):
        super().__init__(f"Failed to cleanup {path}: {error}")
        self.path = path
        self.error = error

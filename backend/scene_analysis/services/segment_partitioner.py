"""
Turns boundary timestamps into the final scene list.

Short raw segments (below min_scene_duration) are never dropped. They extend
the segment being accumulated to their left. A leading run of short segments
has no left neighbour, so it keeps accumulating and absorbs the next segment
whatever its length. The result is gap-free, starts at 0 and ends exactly at
the video duration.
"""

from typing import List, Sequence, Tuple

from scene_analysis.models import SceneSegment


def _raw_segments(boundaries: Sequence[float]) -> List[Tuple[float, float]]:
    return [(start, end) for start, end in zip(boundaries, boundaries[1:]) if end > start]


def merge_short_segments(
    raw: Sequence[Tuple[float, float]],
    min_scene_duration: float,
) -> List[Tuple[float, float]]:
    merged: List[Tuple[float, float]] = []
    current = None

    for start, end in raw:
        if current is None:
            current = [start, end]
            continue

        current_short = (current[1] - current[0]) < min_scene_duration
        if (end - start) < min_scene_duration or current_short:
            current[1] = end
        else:
            merged.append((current[0], current[1]))
            current = [start, end]

    if current is not None:
        merged.append((current[0], current[1]))
    return merged


def partition_segments(
    boundaries: Sequence[float],
    duration: float,
    min_scene_duration: float,
) -> List[SceneSegment]:
    """
    Build SceneSegments (ids 1..N) from sorted boundary timestamps.

    Always returns at least one segment; a video shorter than
    min_scene_duration yields a single whole-video segment.
    """
    spans = merge_short_segments(_raw_segments(boundaries), min_scene_duration)
    if not spans:
        spans = [(0.0, duration)]

    segments: List[SceneSegment] = []
    for i, (start, end) in enumerate(spans):
        if i == 0:
            start = 0.0
        else:
            start = segments[i - 1].end_sec
        if i == len(spans) - 1:
            end = float(duration)
        segments.append(
            SceneSegment(
                id=i + 1,
                start_sec=start,
                end_sec=end,
                duration_sec=end - start,
            )
        )
    return segments

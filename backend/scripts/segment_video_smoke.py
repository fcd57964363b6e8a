"""
End-to-end smoke run of the scene segmentation pipeline against a real URL.

Needs ffmpeg/ffprobe on PATH. Run from repo root:
  python backend/scripts/segment_video_smoke.py https://example.com/video.mp4 [--audio out.wav]
"""

from __future__ import annotations

import json
import os
import sys


def main() -> int:
    # Allow `from scene_analysis...` imports when running directly from repo root.
    sys.path.insert(0, "backend")

    from scene_analysis.logging_config import configure_logging  # noqa: WPS433
    from scene_analysis.services.errors import SceneAnalysisError  # noqa: WPS433
    from scene_analysis.services.scene_segmentation import get_scene_segmentation_service  # noqa: WPS433

    args = sys.argv[1:]
    if not args:
        print(__doc__)
        return 2
    video_url = args[0]
    audio_out = args[args.index("--audio") + 1] if "--audio" in args else None

    configure_logging()
    service = get_scene_segmentation_service()
    workspace_before = set(os.listdir(service.workspace.root))

    try:
        segments = service.segment_video(video_url)
    except SceneAnalysisError as e:
        print(f"FAILED: {type(e).__name__}: {e}")
        return 1

    summary = [
        {
            "id": s.id,
            "startSec": round(s.start_sec, 3),
            "endSec": round(s.end_sec, 3),
            "keyframes": [round(kf.timestamp_sec, 3) for kf in s.keyframes],
        }
        for s in segments
    ]
    print(json.dumps(summary, indent=2))

    leftovers = set(os.listdir(service.workspace.root)) - workspace_before
    assert not leftovers, f"temp files left behind: {sorted(leftovers)}"

    if audio_out:
        wav = service.extract_audio_from_url(video_url)
        with open(audio_out, "wb") as fh:
            fh.write(wav)
        print(f"audio: {len(wav)} bytes -> {audio_out}")

    print("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

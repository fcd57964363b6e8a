from __future__ import annotations

import os
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class SegmentationConfig(BaseModel):
    """
    Tunables for one segmentation run.

    Immutable: updates go through SceneSegmentationService.update_config, which
    swaps in a validated copy. A run keeps the instance it started with.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    scene_threshold: float = Field(default=0.3, gt=0, le=1)  # higher = fewer cuts
    min_scene_duration: float = Field(default=2.0, gt=0)     # seconds
    max_scenes_per_video: int = Field(default=20, ge=1)
    keyframes_per_scene: int = Field(default=3, ge=1)


class StorageConfig(BaseModel):
    temp_workspace_path: str = "/tmp/scene-analysis"
    max_video_size_gb: float = 2.5


class FetchConfig(BaseModel):
    # Some CDNs reject default client identifiers.
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    timeout_seconds: float = 120.0
    chunk_size: int = 1024 * 1024


class FFmpegConfig(BaseModel):
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    threads: int = 0  # 0 = let ffmpeg decide
    probe_timeout: float = 30.0
    detect_timeout: float = 300.0
    frame_timeout: float = 30.0
    audio_timeout: float = 300.0


class KeyframeConfig(BaseModel):
    width: int = 640
    height: int = 360
    jpeg_quality: int = 2  # ffmpeg -q:v, 2 (best) .. 31
    max_workers: int = 4


class AppConfig(BaseModel):
    app_name: str = "Scene Analysis Pipeline"
    log_level: str = "info"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        env_nested_delimiter="__",
    )

    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    ffmpeg: FFmpegConfig = Field(default_factory=FFmpegConfig)
    keyframes: KeyframeConfig = Field(default_factory=KeyframeConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[Any, ...]:
        """
        Support BOTH:
        - Nested env vars (e.g., SEGMENTATION__SCENE_THRESHOLD) via env_nested_delimiter
        - Flat env vars (e.g., SCENE_THRESHOLD) via a legacy mapping source

        Priority: init > env > dotenv > legacy > secrets
        """

        def legacy_flat_env_source() -> Dict[str, Any]:
            env: Dict[str, str] = {}
            try:
                from dotenv import dotenv_values  # local import to avoid hard dependency at import-time

                env_file = cls.model_config.get("env_file", ".env")
                if env_file:
                    file_vals = {k: (v or "") for k, v in dotenv_values(env_file).items()}
                    env.update({k: v for k, v in file_vals.items() if k})
            except Exception:
                # If dotenv parsing fails, fall back to environment only.
                pass

            # Environment variables override .env values
            env.update({k: v for k, v in os.environ.items()})

            out: Dict[str, Any] = {}

            def set_path(path: Tuple[str, ...], value: Any) -> None:
                d: Dict[str, Any] = out
                for key in path[:-1]:
                    d = d.setdefault(key, {})
                d[path[-1]] = value

            # Flat name -> nested path. Values stay strings; pydantic coerces them.
            legacy_vars = {
                "SCENE_THRESHOLD": ("segmentation", "scene_threshold"),
                "MIN_SCENE_DURATION": ("segmentation", "min_scene_duration"),
                "MAX_SCENES_PER_VIDEO": ("segmentation", "max_scenes_per_video"),
                "KEYFRAMES_PER_SCENE": ("segmentation", "keyframes_per_scene"),
                "TEMP_STORAGE_PATH": ("storage", "temp_workspace_path"),
                "MAX_VIDEO_SIZE_GB": ("storage", "max_video_size_gb"),
                "FETCH_USER_AGENT": ("fetch", "user_agent"),
                "FETCH_TIMEOUT_SECONDS": ("fetch", "timeout_seconds"),
                "FFMPEG_BINARY": ("ffmpeg", "ffmpeg_binary"),
                "FFPROBE_BINARY": ("ffmpeg", "ffprobe_binary"),
                "FFMPEG_THREADS": ("ffmpeg", "threads"),
                "KEYFRAME_WORKERS": ("keyframes", "max_workers"),
                "APP_NAME": ("app", "app_name"),
                "LOG_LEVEL": ("app", "log_level"),
            }
            for var, path in legacy_vars.items():
                value = env.get(var)
                if value is not None and value.strip():
                    set_path(path, value.strip())

            return out

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            legacy_flat_env_source,
            file_secret_settings,
        )

    @property
    def temp_dir(self) -> str:
        return self.storage.temp_workspace_path


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List


class _CamelModel(BaseModel):
    # Consumers (REST layer) expect camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Keyframe(_CamelModel):
    """A still frame sampled inside a scene."""
    timestamp_sec: float
    image_data: str  # data:image/jpeg;base64,...
    temp_path: str   # deleted once the run finishes


class SceneSegment(_CamelModel):
    """Represents a final, gap-free scene interval of the video."""
    id: int  # 1-based, contiguous
    start_sec: float
    end_sec: float
    duration_sec: float
    keyframes: List[Keyframe] = Field(default_factory=list)


class AudioFormat(BaseModel):
    """Format fields read from a WAV header."""
    channels: int
    sample_rate: int
    bits_per_sample: int
    audio_format: int  # 1 = linear PCM

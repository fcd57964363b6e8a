"""Video pre-processing: scene segmentation, keyframes and audio extraction."""

__version__ = "1.0.0"

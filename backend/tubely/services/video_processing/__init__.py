"""
Video Processing Package
ffprobe inspection and ffmpeg fast-start remux as recoverable operations
"""

from .core import (
    ASPECT_RATIO_EPSILON,
    MediaProfile,
    Orientation,
    classify_orientation,
    run_media_tool,
)

from .ffprobe import MediaInspector
from .ffmpeg import ContainerOptimizer, PROCESSING_SUFFIX

__all__ = [
    "ASPECT_RATIO_EPSILON",
    "MediaProfile",
    "Orientation",
    "classify_orientation",
    "run_media_tool",
    "MediaInspector",
    "ContainerOptimizer",
    "PROCESSING_SUFFIX",
]

"""
Observation layer: frame sources for the CLI runner.

Sources return FrameData objects; video acquisition stays outside the
detection pipeline.
"""

from .base import FrameSource, FrameSourceConfig
from .capture import CaptureSource, CaptureConfig

__all__ = [
    "FrameSource",
    "FrameSourceConfig",
    "CaptureSource",
    "CaptureConfig",
]

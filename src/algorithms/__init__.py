"""
Geometry algorithms used by the detection pipeline.
"""

from .geometry import iou

__all__ = ["iou"]

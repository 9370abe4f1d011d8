"""
FrameData model for decoded video frames submitted to the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    A decoded frame plus the metadata the pipeline needs.

    Attributes:
        frame: Pixel data as an (H, W, 3) uint8 array (BGR, OpenCV order),
            or None when the source has no decoded image yet.
        width: Frame width in pixels (0 when unknown).
        height: Frame height in pixels (0 when unknown).
        timestamp: Unix timestamp when the frame was captured.
        frame_index: Sequential frame number since the source opened.
        source: Identifier for the camera/video source.
    """
    frame: Optional[np.ndarray]
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array, reading dimensions off its shape."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def is_decodable(self) -> bool:
        """True when pixel data and non-zero dimensions are available."""
        return (
            self.frame is not None
            and self.frame.size > 0
            and self.width > 0
            and self.height > 0
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

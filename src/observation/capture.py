"""
cv2.VideoCapture-backed frame source.

`device` is a camera index (int) for a live webcam or a path (str) to a
recorded session. Recorded sessions can loop for demos and soak tests.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.config import SourceConfig
from models.frame import FrameData
from .base import FrameSource, FrameSourceConfig


@dataclass
class CaptureConfig(FrameSourceConfig):
    device: Union[int, str] = 0
    open_attempts: int = 3
    loop: bool = False

    @classmethod
    def from_source_config(cls, cfg: SourceConfig, name: str = "webcam") -> "CaptureConfig":
        return cls(
            name=name,
            resolution=tuple(cfg.resolution) if cfg.resolution else None,
            device=cfg.device_id,
            loop=cfg.loop,
        )


class CaptureSource(FrameSource):
    """Reads BGR frames from a webcam or a video file."""

    def __init__(self, config: CaptureConfig):
        super().__init__(config)
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_video_file(self) -> bool:
        device = self.config.device
        return isinstance(device, str) and os.path.isfile(device)

    def open(self) -> None:
        if self._opened:
            return

        device = self.config.device
        attempts = max(1, self.config.open_attempts)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(device)
            if cap.isOpened():
                break
            cap.release()
            # A missing or corrupt file will not appear by waiting
            if self.is_video_file or attempt == attempts:
                raise RuntimeError(f"Cannot open capture device {device!r} after {attempt} attempt(s)")
            delay = min(2 ** attempt, 10)
            logging.warning(f"Cannot open capture device {device!r}, retrying in {delay}s ({attempt}/{attempts})")
            time.sleep(delay)

        if isinstance(device, int) and self.config.resolution:
            width, height = self.config.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        self._cap = cap
        self._opened = True
        self.frames_read = 0
        logging.info(f"Capture opened: {self.config.name} ({device!r}) {self.describe()}")

    def grab(self) -> Optional[FrameData]:
        if self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok and self.config.loop and self.is_video_file:
            logging.info(f"{self.config.name}: end of recording, rewinding")
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, frame = self._cap.read()

        if not ok or frame is None:
            if self.is_video_file:
                logging.info(f"{self.config.name}: end of recording after {self.frames_read} frames")
            else:
                logging.warning(f"{self.config.name}: camera returned no frame")
            return None

        self.frames_read += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self.frames_read,
            source=self.config.name,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logging.info(f"Capture closed: {self.config.name} after {self.frames_read} frames")
        self._opened = False

    def describe(self) -> Dict[str, Any]:
        """Negotiated capture properties (empty when closed)."""
        cap = self._cap
        if cap is None:
            return {}
        return {
            "width": int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            "fps": cap.get(cv2.CAP_PROP_FPS),
        }

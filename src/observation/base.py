"""
Frame sources feeding the detection orchestrator.

A source only produces decoded frames. Pacing (which frames are due for a
pipeline pass) is decided by `FrameSource.paced()`, so the orchestrator
never schedules anything itself.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from models.frame import FrameData


@dataclass
class FrameSourceConfig:
    """
    Attributes:
        name: Label stamped on every FrameData (e.g. "webcam", "exam-recording").
        resolution: Requested (width, height); None keeps the device default.
    """
    name: str = "webcam"
    resolution: Optional[Tuple[int, int]] = None


class FrameSource(ABC):
    """
    Base class for webcams and recorded sessions.

    Usage:
        with CaptureSource(config) as source:
            for frame_data, due in source.paced(1.0):
                if due:
                    orchestrator.submit_frame(frame_data)
    """

    def __init__(self, config: FrameSourceConfig):
        self.config = config
        self.frames_read = 0
        self._opened = False

    @property
    def opened(self) -> bool:
        return self._opened

    @abstractmethod
    def open(self) -> None:
        """Acquire the device. Raises RuntimeError when it cannot be opened."""

    @abstractmethod
    def grab(self) -> Optional[FrameData]:
        """Next decoded frame, or None once the source is exhausted or failing."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call more than once."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def stream(self) -> Iterator[FrameData]:
        if not self._opened:
            raise RuntimeError(f"Frame source '{self.config.name}' is not open")
        frame_data = self.grab()
        while frame_data is not None:
            yield frame_data
            frame_data = self.grab()

    def paced(
        self,
        interval_s: float,
        clock: Callable[[], float] = time.time,
    ) -> Iterator[Tuple[FrameData, bool]]:
        """
        Yield every frame with a flag saying whether a tick is due.

        The first frame is always due; after that one frame per interval_s.
        Frames in between are still yielded (for display) but not due.
        """
        last_tick: Optional[float] = None
        for frame_data in self.stream():
            now = clock()
            due = last_tick is None or now - last_tick >= interval_s
            if due:
                last_tick = now
            yield frame_data, due

"""
Inference backend interface.

Backends return class-labelled predictions as (x, y, width, height) boxes in
the pixel space of the frame they were given.
"""

from __future__ import annotations

from typing import Callable, List, Protocol

import numpy as np

from models.detection import Prediction


class Detector(Protocol):
    def detect(self, frame: np.ndarray) -> List[Prediction]:
        ...


# Builds a detector for a named compute backend ("cuda", "mps", "cpu", ...);
# raises if the backend cannot be used on this machine.
DetectorFactory = Callable[[str], Detector]

"""
Ultralytics YOLO inference backend.

Ultralytics is an optional dependency (`pip install .[yolo]`); it is imported
lazily so the rest of the pipeline runs and tests without it.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from models.config import DetectorConfig
from models.detection import Prediction
from .backend import Detector


class UltralyticsBackend(Detector):
    """
    COCO-pretrained YOLO detector pinned to one compute device.

    Construction loads the weights, moves them to the device and runs a
    warm-up inference, so an unusable device fails here rather than on the
    first real frame.
    """

    def __init__(self, cfg: DetectorConfig, device: str = "cpu"):
        self.cfg = cfg
        self.device = device
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or `pip install .[yolo]`."
            ) from e

        self._model = YOLO(cfg.model)
        self._model.to(device)
        self._model.predict(
            source=np.zeros((64, 64, 3), dtype=np.uint8),
            device=device,
            verbose=False,
        )
        logging.info(f"YOLO model {cfg.model} ready on {device}")

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            device=self.device,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[Prediction] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            class_name = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            pred = Prediction.from_raw(
                class_name,
                c,
                (x1, y1, x2 - x1, y2 - y1),
            )
            if pred is not None:
                out.append(pred)

        return out

    def close(self) -> None:
        self._model = None


def ultralytics_factory(cfg: DetectorConfig):
    """Return a DetectorFactory building UltralyticsBackend instances."""

    def build(device: str) -> UltralyticsBackend:
        return UltralyticsBackend(cfg, device=device)

    return build

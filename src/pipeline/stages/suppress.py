"""
Suppress stage: class-aware non-maximum suppression.

Device predictions use a tighter IoU threshold because phones produce more
overlapping near-duplicates than other classes.
"""

from __future__ import annotations

from typing import List, Optional

from algorithms.geometry import iou
from models.config import DEVICE_CLASS, SuppressionConfig
from models.detection import Prediction


def non_max_suppression(predictions: List[Prediction], iou_threshold: float) -> List[Prediction]:
    """
    Greedy NMS within one subset.

    Sorted by descending confidence (stable, so ties keep input order). A
    prediction is suppressed only by an already kept prediction of the same
    class whose IoU with it is strictly greater than iou_threshold.
    """
    ordered = sorted(predictions, key=lambda p: p.confidence, reverse=True)
    keep: List[Prediction] = []
    for candidate in ordered:
        duplicate = any(
            kept.class_name == candidate.class_name
            and iou(kept.bbox, candidate.bbox) > iou_threshold
            for kept in keep
        )
        if not duplicate:
            keep.append(candidate)
    return keep


class Suppressor:
    """Removes duplicate predictions per class; device keepers come first."""

    def __init__(self, config: Optional[SuppressionConfig] = None, device_class: str = DEVICE_CLASS):
        self.config = config or SuppressionConfig()
        self.device_class = device_class

    def suppress(self, predictions: List[Prediction]) -> List[Prediction]:
        if len(predictions) <= 1:
            return list(predictions)

        devices = [p for p in predictions if p.class_name == self.device_class]
        others = [p for p in predictions if p.class_name != self.device_class]

        kept_devices = non_max_suppression(devices, self.config.device_iou_threshold)
        kept_others = non_max_suppression(others, self.config.iou_threshold)
        return kept_devices + kept_others

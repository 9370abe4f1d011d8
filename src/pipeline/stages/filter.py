"""
Filter stage: per-class confidence thresholds plus device plausibility.

The detector on its own yields many small or oddly shaped device false
positives, so device predictions need both the class threshold and
validate_mobile().
"""

from __future__ import annotations

from typing import List, Optional

from models.config import DEVICE_CLASS, FilterConfig
from models.detection import Prediction


class ClassFilter:
    """Drops predictions below their class threshold or implausible as a device."""

    def __init__(self, config: Optional[FilterConfig] = None, device_class: str = DEVICE_CLASS):
        self.config = config or FilterConfig()
        self.device_class = device_class

    def threshold_for(self, class_name: str) -> float:
        """Minimum confidence for a class; unknown classes use the default."""
        return self.config.class_thresholds.get(class_name, self.config.default_threshold)

    def validate_mobile(self, prediction: Prediction) -> bool:
        """
        Geometric plausibility check for a device prediction.

        Aspect ratio must be in the portrait or landscape band, the box must
        be large enough and the confidence above the device floor.
        """
        cfg = self.config
        aspect_ratio = prediction.bbox.aspect_ratio
        if aspect_ratio is None:
            return False

        portrait_lo, portrait_hi = cfg.mobile_portrait_range
        landscape_lo, landscape_hi = cfg.mobile_landscape_range
        valid_aspect = (
            portrait_lo <= aspect_ratio <= portrait_hi
            or landscape_lo <= aspect_ratio <= landscape_hi
        )
        valid_size = prediction.bbox.area >= cfg.mobile_min_area
        valid_confidence = prediction.confidence >= cfg.mobile_min_confidence

        return valid_aspect and valid_size and valid_confidence

    def accepts(self, prediction: Prediction) -> bool:
        if prediction.confidence < self.threshold_for(prediction.class_name):
            return False
        if prediction.class_name == self.device_class:
            return self.validate_mobile(prediction)
        return True

    def filter(self, predictions: List[Prediction]) -> List[Prediction]:
        """Return the predictions that pass, in input order."""
        return [p for p in predictions if self.accepts(p)]

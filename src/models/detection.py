"""
Prediction models for object detection results.

Boxes are (x, y, width, height) in pixel space of the processed frame.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned bounding box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> Optional[float]:
        """Width / height, or None for a zero-height box."""
        if self.height == 0:
            return None
        return self.width / self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.x2, self.y2)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (x, y, width, height) sequence."""
        return cls(x=float(t[0]), y=float(t[1]), width=float(t[2]), height=float(t[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Prediction:
    """
    A single class-labelled detection.

    The same shape is used at every pipeline stage (raw, filtered,
    suppressed, smoothed); stages return new instances instead of mutating.

    Attributes:
        class_name: Detector class label (e.g. "person", "cell phone").
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in processed-frame pixels.
    """
    class_name: str
    confidence: float
    bbox: BoundingBox

    @classmethod
    def from_raw(
        cls,
        class_name: Any,
        confidence: Any,
        bbox: Sequence[Any],
    ) -> Optional["Prediction"]:
        """
        Adapter: validate a loosely typed detector output.

        Returns None for shapes the pipeline cannot use: empty labels,
        non-finite numbers, negative sizes or confidences outside [0, 1].
        """
        try:
            label = str(class_name).strip() if class_name is not None else ""
            conf = float(confidence)
            values = [float(v) for v in bbox]
        except (TypeError, ValueError):
            logging.debug(f"Dropping malformed prediction: {class_name!r} {confidence!r} {bbox!r}")
            return None

        if not label or len(values) != 4:
            logging.debug(f"Dropping prediction without label or 4-value box: {label!r} {values}")
            return None
        if not all(math.isfinite(v) for v in values + [conf]):
            logging.debug(f"Dropping non-finite prediction: {label} {conf} {values}")
            return None
        if values[2] < 0 or values[3] < 0:
            logging.debug(f"Dropping prediction with negative size: {label} {values}")
            return None

        # Tolerate float noise at the bounds, reject anything else
        if -1e-6 <= conf < 0:
            conf = 0.0
        elif 1 < conf <= 1 + 1e-6:
            conf = 1.0
        if not 0.0 <= conf <= 1.0:
            logging.debug(f"Dropping prediction with confidence out of range: {label} {conf}")
            return None

        return cls(class_name=label, confidence=conf, bbox=BoundingBox.from_tuple(values))

    def with_values(self, confidence: float, bbox: BoundingBox) -> "Prediction":
        return replace(self, confidence=confidence, bbox=bbox)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "class_name": self.class_name,
            "confidence": self.confidence,
            "bbox": self.bbox.to_dict(),
        }


def predictions_from_raw(rows: Iterable[Dict[str, Any]]) -> List[Prediction]:
    """
    Adapter: convert dict rows ({"class", "score", "bbox"}) to Predictions.

    Keys "class_name"/"confidence" are accepted as aliases. Malformed rows
    are dropped.
    """
    out: List[Prediction] = []
    for row in rows or []:
        # bbox may be a numpy array, which has no truth value
        bbox = row.get("bbox")
        pred = Prediction.from_raw(
            row.get("class_name", row.get("class")),
            row.get("confidence", row.get("score")),
            () if bbox is None else bbox,
        )
        if pred is not None:
            out.append(pred)
    return out

"""
Box geometry helpers shared by suppression and smoothing.
"""

from __future__ import annotations

from typing import Sequence, Union

from models.detection import BoundingBox

BoxLike = Union[BoundingBox, Sequence[float]]


def _as_xywh(box: BoxLike):
    if isinstance(box, BoundingBox):
        return box.as_tuple()
    return (float(box[0]), float(box[1]), float(box[2]), float(box[3]))


def iou(box_a: BoxLike, box_b: BoxLike) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Args:
        box_a: First box, BoundingBox or (x, y, width, height).
        box_b: Second box, BoundingBox or (x, y, width, height).

    Returns:
        IoU value between 0 and 1. Boxes that only touch, or do not
        overlap at all, give exactly 0.
    """
    x_a, y_a, w_a, h_a = _as_xywh(box_a)
    x_b, y_b, w_b, h_b = _as_xywh(box_b)
    x2_a, y2_a = x_a + w_a, y_a + h_a
    x2_b, y2_b = x_b + w_b, y_b + h_b

    # Calculate intersection
    x1_i = max(x_a, x_b)
    y1_i = max(y_a, y_b)
    x2_i = min(x2_a, x2_b)
    y2_i = min(y2_a, y2_b)

    if x2_i <= x1_i or y2_i <= y1_i:
        return 0.0

    intersection = (x2_i - x1_i) * (y2_i - y1_i)

    # Areas from corners so identical boxes give exactly 1.0
    area_a = (x2_a - x_a) * (y2_a - y_a)
    area_b = (x2_b - x_b) * (y2_b - y_b)
    union = area_a + area_b - intersection

    if union <= 0:
        return 0.0

    return min(1.0, intersection / union)

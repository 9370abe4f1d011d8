"""
Tests for box IoU.
"""

import pytest

from algorithms.geometry import iou
from models.detection import BoundingBox


class TestIoU:
    """Tests for iou()."""

    def test_identical_boxes(self):
        """Identical boxes give exactly 1."""
        box = BoundingBox(10, 20, 30, 40)
        assert iou(box, box) == 1.0

    def test_disjoint_boxes(self):
        """Non-overlapping boxes give 0."""
        assert iou((0, 0, 10, 10), (50, 50, 10, 10)) == 0.0

    def test_touching_boxes(self):
        """Boxes sharing only an edge give 0."""
        assert iou((0, 0, 10, 10), (10, 0, 10, 10)) == 0.0

    def test_half_overlap(self):
        """Two 10x10 boxes offset by 5 overlap 50 / 150."""
        assert iou((0, 0, 10, 10), (5, 0, 10, 10)) == pytest.approx(1 / 3)

    def test_contained_box(self):
        """A box inside another gives inner area / outer area."""
        assert iou((0, 0, 20, 20), (5, 5, 10, 10)) == pytest.approx(0.25)

    def test_symmetric(self):
        """iou(a, b) == iou(b, a)."""
        a = BoundingBox(3, 7, 25, 14)
        b = BoundingBox(10, 2, 9, 30)
        assert iou(a, b) == iou(b, a)

    def test_zero_area_boxes(self):
        """Degenerate boxes never divide by zero."""
        assert iou((5, 5, 0, 0), (5, 5, 0, 0)) == 0.0

    def test_accepts_mixed_inputs(self):
        """BoundingBox and plain tuples can be mixed."""
        assert iou(BoundingBox(0, 0, 10, 10), [0, 0, 10, 10]) == 1.0

    @pytest.mark.parametrize("a,b", [
        ((0, 0, 10, 10), (2, 3, 10, 10)),
        ((100, 100, 50, 80), (120, 90, 60, 60)),
        ((0.5, 0.5, 1.25, 3.75), (1.0, 1.0, 2.0, 2.0)),
    ])
    def test_in_unit_range(self, a, b):
        """Overlapping boxes give a value in (0, 1)."""
        value = iou(a, b)
        assert 0.0 < value < 1.0

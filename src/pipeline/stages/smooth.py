"""
Smooth stage: fuse repeated sightings across a short time window.

One-frame flicker passes through unchanged, while an object seen in
several recent frames gets an averaged box and a boosted confidence. A phone
held continuously therefore scores higher than one glimpsed once.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from algorithms.geometry import iou
from models.config import DEVICE_CLASS, SmoothingConfig
from models.detection import BoundingBox, Prediction


@dataclass(frozen=True)
class HistoryEntry:
    """Suppressed predictions of one pass, tagged with the pass time (seconds)."""
    timestamp: float
    predictions: Tuple[Prediction, ...]


class TemporalSmoother:
    """
    Maintains the rolling detection history and fuses matches.

    The history holds suppressed (not smoothed) predictions, so boosts never
    compound across passes. The device history is pruned by the same rule
    but is not read by smooth().

    Example:
        smoother = TemporalSmoother(SmoothingConfig())
        smoothed = smoother.smooth(suppressed, now=clock())
    """

    def __init__(self, config: Optional[SmoothingConfig] = None, device_class: str = DEVICE_CLASS):
        self.config = config or SmoothingConfig()
        self.device_class = device_class
        self._history: Deque[HistoryEntry] = deque()
        self._device_history: Deque[Tuple[float, Prediction]] = deque()

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._history)

    @property
    def device_history(self) -> Tuple[Tuple[float, Prediction], ...]:
        return tuple(self._device_history)

    def reset(self) -> None:
        self._history.clear()
        self._device_history.clear()

    def _prune(self, now: float) -> None:
        window_s = self.config.window_ms / 1000.0
        self._history = deque(e for e in self._history if now - e.timestamp <= window_s)
        self._device_history = deque(
            (ts, p) for ts, p in self._device_history if now - ts <= window_s
        )

    def _is_device(self, prediction: Prediction) -> bool:
        return prediction.class_name == self.device_class

    def _match_threshold(self, prediction: Prediction) -> float:
        if self._is_device(prediction):
            return self.config.device_match_iou
        return self.config.match_iou

    def _boost(self, prediction: Prediction) -> float:
        if self._is_device(prediction):
            return self.config.device_boost
        return self.config.boost

    def record(self, predictions: List[Prediction], now: float) -> None:
        """Append this pass to both histories and drop expired entries."""
        self._history.append(HistoryEntry(timestamp=now, predictions=tuple(predictions)))
        for pred in predictions:
            if self._is_device(pred):
                self._device_history.append((now, pred))
        self._prune(now)

    def matches_for(self, prediction: Prediction) -> List[Prediction]:
        """Same-class history predictions overlapping above the match threshold."""
        threshold = self._match_threshold(prediction)
        return [
            past
            for entry in self._history
            for past in entry.predictions
            if past.class_name == prediction.class_name
            and iou(past.bbox, prediction.bbox) > threshold
        ]

    def fuse(self, prediction: Prediction, matches: List[Prediction]) -> Prediction:
        n = len(matches)
        avg_conf = sum(m.confidence for m in matches) / n
        avg_box = BoundingBox(
            x=sum(m.bbox.x for m in matches) / n,
            y=sum(m.bbox.y for m in matches) / n,
            width=sum(m.bbox.width for m in matches) / n,
            height=sum(m.bbox.height for m in matches) / n,
        )
        return prediction.with_values(
            confidence=min(1.0, avg_conf * self._boost(prediction)),
            bbox=avg_box,
        )

    def smooth(self, predictions: List[Prediction], now: float) -> List[Prediction]:
        """
        Record the current pass, then fuse each prediction with its matches.

        Args:
            predictions: Suppressed predictions for the current frame.
            now: Pass timestamp in seconds.
        """
        self.record(predictions, now)

        if len(self._history) < self.config.min_history:
            return list(predictions)

        smoothed: List[Prediction] = []
        for pred in predictions:
            matches = self.matches_for(pred)
            if len(matches) >= self.config.min_matches:
                smoothed.append(self.fuse(pred, matches))
            else:
                smoothed.append(pred)
        return smoothed

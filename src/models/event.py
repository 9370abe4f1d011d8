"""
DetectionEvent model for logged proctoring events.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .detection import BoundingBox, Prediction


class EventType(str, Enum):
    """Loggable event types."""
    MOBILE = "mobile"
    PERSON = "person"
    FOCUS_LOST = "focus_lost"
    MULTIPLE_PEOPLE = "multiple_people"
    UNKNOWN_OBJECT = "unknown_object"


# Human-readable labels used by log/export collaborators
EVENT_TYPE_LABELS: Dict[EventType, str] = {
    EventType.MOBILE: "Mobile Device",
    EventType.PERSON: "Person Detected",
    EventType.FOCUS_LOST: "Focus Lost",
    EventType.MULTIPLE_PEOPLE: "Multiple People",
    EventType.UNKNOWN_OBJECT: "Unknown Object",
}


def event_type_for_class(class_name: str, device_class: Optional[str] = None) -> EventType:
    """
    Map a detector class label to an event type.

    The configured device class is always a mobile event. Labels naming a
    phone or cell are too, so detectors with their own phone labels still
    map. Anything else that is not a person is reported as unknown_object
    (laptop, tv, book, ...).
    """
    lower = class_name.lower()
    if device_class and lower == device_class.lower():
        return EventType.MOBILE
    if "phone" in lower or "cell" in lower:
        return EventType.MOBILE
    if lower == "person":
        return EventType.PERSON
    return EventType.UNKNOWN_OBJECT


@dataclass(frozen=True)
class DetectionEvent:
    """
    A discrete event derived from a smoothed prediction.

    Attributes:
        id: Unique id, "<pass timestamp ms>-<index within pass>".
        timestamp: Unix timestamp of the pipeline pass.
        type: Event type.
        confidence: Smoothed confidence (0-1).
        description: Human-readable summary.
        bbox: Box in processed-frame pixels, if any.
        class_name: Detector class that produced the event.
    """
    id: str
    timestamp: float
    type: EventType
    confidence: float
    description: str
    bbox: Optional[BoundingBox] = None
    class_name: Optional[str] = None

    @classmethod
    def from_prediction(
        cls,
        prediction: Prediction,
        timestamp: float,
        index: int,
        device_class: Optional[str] = None,
    ) -> "DetectionEvent":
        """Adapter: build the event for the index-th smoothed prediction of a pass."""
        return cls(
            id=f"{int(round(timestamp * 1000))}-{index}",
            timestamp=timestamp,
            type=event_type_for_class(prediction.class_name, device_class),
            confidence=prediction.confidence,
            description=(
                f"{prediction.class_name} detected with "
                f"{prediction.confidence * 100:.1f}% confidence"
            ),
            bbox=prediction.bbox,
            class_name=prediction.class_name,
        )

    @property
    def label(self) -> str:
        return EVENT_TYPE_LABELS[self.type]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "confidence": self.confidence,
            "description": self.description,
            "bbox": self.bbox.to_dict() if self.bbox is not None else None,
            "class_name": self.class_name,
        }

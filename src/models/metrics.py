"""
Focus metrics, per-pass results and session statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .detection import Prediction
from .event import DetectionEvent, EventType


@dataclass(frozen=True)
class FocusMetrics:
    """
    Heuristic attention scores, each an integer in [0, 100].

    Attributes:
        focus_score: Penalised by devices and distracting objects.
        eye_contact_score: Driven by person count and horizontal centering.
        head_pose_score: Driven by person confidence and relative size.
        overall_attention: Rounded mean of the three scores above.
    """
    focus_score: int = 100
    eye_contact_score: int = 100
    head_pose_score: int = 100
    overall_attention: int = 100

    def to_dict(self) -> Dict[str, int]:
        return {
            "focus_score": self.focus_score,
            "eye_contact_score": self.eye_contact_score,
            "head_pose_score": self.head_pose_score,
            "overall_attention": self.overall_attention,
        }


@dataclass(frozen=True)
class PipelineResult:
    """
    Return value of one accepted pipeline pass. Not retained.

    Attributes:
        smoothed_predictions: Final predictions for this frame.
        new_detections: Events appended to the log by this pass.
        person_count: Number of person predictions.
        mobile_count: Number of device-class predictions.
        total_device_count: Devices plus secondary computers.
        metrics: Metrics snapshot computed by this pass.
        frame_size: (width, height) of the processed frame.
    """
    smoothed_predictions: List[Prediction]
    new_detections: List[DetectionEvent]
    person_count: int
    mobile_count: int
    total_device_count: int
    metrics: FocusMetrics = field(default_factory=FocusMetrics)
    frame_size: Optional[Tuple[int, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "smoothed_predictions": [p.to_dict() for p in self.smoothed_predictions],
            "new_detections": [e.to_dict() for e in self.new_detections],
            "person_count": self.person_count,
            "mobile_count": self.mobile_count,
            "total_device_count": self.total_device_count,
            "metrics": self.metrics.to_dict(),
            "frame_size": list(self.frame_size) if self.frame_size else None,
        }


@dataclass(frozen=True)
class SessionStats:
    """Summary of the retained event log for dashboards and exports."""
    total_detections: int = 0
    mobile_detections: int = 0
    person_detections: int = 0
    focus_violations: int = 0
    session_duration_s: int = 0
    average_focus_score: int = 100

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_detections": self.total_detections,
            "mobile_detections": self.mobile_detections,
            "person_detections": self.person_detections,
            "focus_violations": self.focus_violations,
            "session_duration_s": self.session_duration_s,
            "average_focus_score": self.average_focus_score,
        }


def compute_session_stats(
    events: Sequence[DetectionEvent],
    metrics: FocusMetrics,
    session_start: float,
    now: float,
    mobile_violation_confidence: float = 0.7,
    object_violation_confidence: float = 0.8,
) -> SessionStats:
    """
    Summarise retained events.

    Device-like events count both "mobile" and "unknown_object" entries.
    A focus violation is a confident mobile event or a very confident
    unknown object.
    """
    mobile = 0
    person = 0
    violations = 0
    for event in events:
        if event.type in (EventType.MOBILE, EventType.UNKNOWN_OBJECT):
            mobile += 1
        elif event.type == EventType.PERSON:
            person += 1

        if event.type == EventType.MOBILE and event.confidence > mobile_violation_confidence:
            violations += 1
        elif event.type == EventType.UNKNOWN_OBJECT and event.confidence > object_violation_confidence:
            violations += 1

    return SessionStats(
        total_detections=len(events),
        mobile_detections=mobile,
        person_detections=person,
        focus_violations=violations,
        session_duration_s=int(round(max(0.0, now - session_start))),
        average_focus_score=metrics.focus_score,
    )

"""
Detection pipeline for the focus guard.

A pass runs, in order:
- preprocess: bound the frame size, boost contrast
- detect: pretrained multi-class detector
- filter: per-class thresholds, device plausibility
- suppress: class-aware NMS
- smooth: fuse repeated sightings over a 600 ms window
- score: focus / eye contact / head pose / overall attention
"""

from .engine import DetectionOrchestrator, OrchestratorState, OrchestratorStats
from .event_log import EventLog

__all__ = [
    "DetectionOrchestrator",
    "OrchestratorState",
    "OrchestratorStats",
    "EventLog",
]

"""
Typed models for the focus guard pipeline.

Use the adapter functions to convert from loosely typed detector output
and config dictionaries.
"""

from .frame import FrameData
from .detection import BoundingBox, Prediction, predictions_from_raw
from .event import DetectionEvent, EventType, event_type_for_class
from .metrics import FocusMetrics, PipelineResult, SessionStats, compute_session_stats
from .config import (
    DEVICE_CLASS,
    Config,
    PreprocessConfig,
    FilterConfig,
    SuppressionConfig,
    SmoothingConfig,
    ScoringConfig,
    DetectorConfig,
    OrchestratorConfig,
    SourceConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Prediction",
    "predictions_from_raw",
    # Events
    "DetectionEvent",
    "EventType",
    "event_type_for_class",
    # Metrics
    "FocusMetrics",
    "PipelineResult",
    "SessionStats",
    "compute_session_stats",
    # Config
    "DEVICE_CLASS",
    "Config",
    "PreprocessConfig",
    "FilterConfig",
    "SuppressionConfig",
    "SmoothingConfig",
    "ScoringConfig",
    "DetectorConfig",
    "OrchestratorConfig",
    "SourceConfig",
    "WebConfig",
]

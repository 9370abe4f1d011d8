from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BoxModel(BaseModel):
    x: float
    y: float
    width: float
    height: float


class PredictionModel(BaseModel):
    class_name: str
    confidence: float
    bbox: BoxModel


class FocusMetricsResponse(BaseModel):
    focus_score: int = Field(..., ge=0, le=100)
    eye_contact_score: int = Field(..., ge=0, le=100)
    head_pose_score: int = Field(..., ge=0, le=100)
    overall_attention: int = Field(..., ge=0, le=100)


class DetectionEventModel(BaseModel):
    id: str
    timestamp: float
    type: str = Field(..., description="mobile|person|focus_lost|multiple_people|unknown_object")
    confidence: float
    description: str
    bbox: Optional[BoxModel] = None
    class_name: Optional[str] = None


class EventsResponse(BaseModel):
    """Retained events, most recent last. At most the log capacity (50)."""
    events: List[DetectionEventModel]
    capacity: int


class SessionStatsResponse(BaseModel):
    total_detections: int
    mobile_detections: int
    person_detections: int
    focus_violations: int
    session_duration_s: int
    average_focus_score: int


class StatusResponse(BaseModel):
    state: str = Field(..., description="not_ready|ready|detecting")
    ready: bool
    backend: Optional[str] = None
    load_error: Optional[str] = None
    event_count: int
    last_frame_age_s: Optional[float] = None
    pipeline: Dict[str, Optional[float]] = Field(default_factory=dict)


class FrameResponse(BaseModel):
    """Result of POST /api/frame. accepted is False when the frame was dropped."""
    accepted: bool
    smoothed_predictions: List[PredictionModel] = Field(default_factory=list)
    new_detections: List[DetectionEventModel] = Field(default_factory=list)
    person_count: int = 0
    mobile_count: int = 0
    total_device_count: int = 0
    metrics: Optional[FocusMetricsResponse] = None

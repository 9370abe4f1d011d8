from __future__ import annotations

import logging
import time
from typing import Optional

import cv2
import numpy as np
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from models.frame import FrameData
from pipeline.engine import DetectionOrchestrator
from ..state import state
from ..api_models import (
    EventsResponse,
    FocusMetricsResponse,
    FrameResponse,
    SessionStatsResponse,
    StatusResponse,
)

router = APIRouter()


def _orchestrator() -> DetectionOrchestrator:
    orchestrator = state.get_orchestrator()
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Detection pipeline not started")
    return orchestrator


def decode_frame(payload: bytes) -> Optional[np.ndarray]:
    """Decode an encoded image (JPEG, PNG, ...) into a BGR array, or None."""
    if not payload:
        return None
    buf = np.frombuffer(payload, dtype=np.uint8)
    return cv2.imdecode(buf, cv2.IMREAD_COLOR)


@router.get("/metrics", response_model=FocusMetricsResponse)
def metrics():
    return _orchestrator().metrics.to_dict()


@router.get("/events", response_model=EventsResponse)
def events(limit: Optional[int] = Query(None, ge=1, description="Return only the most recent N events")):
    orchestrator = _orchestrator()
    retained = orchestrator.events
    if limit is not None:
        retained = retained[-limit:]
    return {
        "events": [e.to_dict() for e in retained],
        "capacity": orchestrator.config.orchestrator.event_log_capacity,
    }


@router.get("/stats", response_model=SessionStatsResponse)
def stats():
    return _orchestrator().session_stats().to_dict()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Pipeline status for the UI.
    Fields:
    - state: not_ready|ready|detecting
    - ready: True once a detector backend has loaded
    - backend: compute backend the detector runs on
    - load_error: why loading failed, if it did
    - last_frame_age_s: seconds since the runner last read a frame
    - pipeline: pass/drop counters and last pass latency
    """
    orchestrator = _orchestrator()
    sys_stats = state.get_system_stats_copy()
    last_frame_ts = sys_stats.get("last_frame_ts")
    return {
        "state": orchestrator.state.value,
        "ready": orchestrator.is_ready,
        "backend": orchestrator.backend,
        "load_error": orchestrator.load_error,
        "event_count": len(orchestrator.events),
        "last_frame_age_s": time.time() - last_frame_ts if last_frame_ts else None,
        "pipeline": orchestrator.stats.to_dict(),
    }


@router.post("/frame", response_model=FrameResponse)
async def submit_frame(request: Request):
    """
    Submit one encoded frame (raw request body) for detection.

    Returns accepted=false when the frame was dropped (model not ready,
    rate-limited, another pass in flight, or the pass failed).
    """
    orchestrator = _orchestrator()
    payload = await request.body()
    frame = decode_frame(payload)
    if frame is None:
        raise HTTPException(status_code=400, detail="Body is not a decodable image")

    frame_data = FrameData.from_numpy(frame, timestamp=time.time(), source="api")
    result = await run_in_threadpool(orchestrator.submit_frame, frame_data)
    if result is None:
        return {"accepted": False}

    state.mark_frame(frame_data.timestamp)
    body = result.to_dict()
    body.pop("frame_size", None)
    body["accepted"] = True
    return body


@router.post("/reset", response_model=SessionStatsResponse)
def reset():
    orchestrator = _orchestrator()
    if not orchestrator.reset():
        raise HTTPException(status_code=409, detail="A detection pass is still running, try again")
    logging.info("Session reset via API")
    return orchestrator.session_stats().to_dict()

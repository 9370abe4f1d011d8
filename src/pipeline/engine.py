"""
Detection orchestrator for one video stream.

The orchestrator is passive: an external caller (timer loop, web request)
submits decoded frames and gets a PipelineResult back, or None when the frame
was dropped. It owns the model, the detection histories, the event log and
the metrics snapshot for exactly one stream.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from inference.backend import Detector, DetectorFactory
from models.config import Config
from models.detection import BoundingBox, Prediction, predictions_from_raw
from models.event import DetectionEvent
from models.frame import FrameData
from models.metrics import FocusMetrics, PipelineResult, SessionStats, compute_session_stats
from pipeline.event_log import EventLog
from pipeline.stages.filter import ClassFilter
from pipeline.stages.preprocess import FramePreprocessor
from pipeline.stages.score import AttentionScorer
from pipeline.stages.smooth import TemporalSmoother
from pipeline.stages.suppress import Suppressor

# Returns the current time in seconds
Clock = Callable[[], float]


class OrchestratorState(str, Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    DETECTING = "detecting"


@dataclass
class OrchestratorStats:
    """Runtime counters for status reporting."""
    passes: int = 0
    dropped_not_ready: int = 0
    dropped_undecodable: int = 0
    dropped_busy: int = 0
    dropped_rate_limited: int = 0
    failures: int = 0
    last_latency_ms: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "passes": self.passes,
            "dropped_not_ready": self.dropped_not_ready,
            "dropped_undecodable": self.dropped_undecodable,
            "dropped_busy": self.dropped_busy,
            "dropped_rate_limited": self.dropped_rate_limited,
            "failures": self.failures,
            "last_latency_ms": self.last_latency_ms,
        }


class DetectionOrchestrator:
    """
    Wires preprocess -> detect -> filter -> suppress -> smooth -> score.

    Lifecycle:
        1. Construct once per stream (state NOT_READY)
        2. load_model() / load_model_async() tries each compute backend in
           order until one loads (state READY)
        3. Call submit_frame() on every tick; at most one pass runs at a
           time and passes start at least min_interval_ms apart
        4. close() when the stream ends

    Overlapping submissions are dropped, never queued. No exception from
    the detector or a stage reaches the caller; the pass returns None and
    the orchestrator stays READY for the next frame.

    Example:
        orchestrator = DetectionOrchestrator(Config())
        orchestrator.load_model()
        result = orchestrator.submit_frame(frame_data)
        metrics = orchestrator.metrics
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        detector_factory: Optional[DetectorFactory] = None,
        clock: Clock = time.time,
    ):
        self.config = config or Config()
        if detector_factory is None:
            from inference.ultralytics_backend import ultralytics_factory
            detector_factory = ultralytics_factory(self.config.detector)
        self._factory = detector_factory
        self._clock = clock

        device_class = self.config.device_class
        self.preprocessor = FramePreprocessor(self.config.preprocess)
        self.class_filter = ClassFilter(self.config.filter, device_class)
        self.suppressor = Suppressor(self.config.suppression, device_class)
        self.smoother = TemporalSmoother(self.config.smoothing, device_class)
        self.scorer = AttentionScorer(self.config.scoring, device_class)

        self._event_log = EventLog(self.config.orchestrator.event_log_capacity)
        self._metrics = FocusMetrics()

        self._detector: Optional[Detector] = None
        self._backend: Optional[str] = None
        self.load_error: Optional[str] = None

        # Guards all per-pass state; acquired non-blocking by submit_frame
        self._pass_lock = threading.Lock()
        self._load_lock = threading.Lock()
        self._lock_timeout_s = self.config.orchestrator.lock_timeout_ms / 1000.0
        self._detecting = False
        self._last_start: Optional[float] = None
        self._session_start = clock()
        self.stats = OrchestratorStats()

    # -- lifecycle -------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        if self._detector is None:
            return OrchestratorState.NOT_READY
        if self._detecting:
            return OrchestratorState.DETECTING
        return OrchestratorState.READY

    @property
    def is_ready(self) -> bool:
        return self._detector is not None

    @property
    def backend(self) -> Optional[str]:
        """Name of the compute backend the model was loaded on."""
        return self._backend

    def load_model(self) -> bool:
        """
        Load the detector, trying configured backends fastest first.

        Returns:
            True once a backend has loaded. False if every backend failed;
            the orchestrator then stays NOT_READY and load_error says why.
        """
        with self._load_lock:
            if self._detector is not None:
                return True

            errors: List[str] = []
            for backend in self.config.detector.backends:
                logging.info(f"Loading detector with {backend} backend")
                try:
                    detector = self._factory(backend)
                except Exception as e:
                    logging.warning(f"Failed to load detector with {backend} backend: {e}")
                    errors.append(f"{backend}: {e}")
                    continue

                self._detector = detector
                self._backend = backend
                self.load_error = None
                logging.info(f"Detector loaded with {backend} backend")
                return True

            self.load_error = "; ".join(errors) if errors else "no backends configured"
            logging.error(f"Failed to load detector with any backend ({self.load_error})")
            return False

    def load_model_async(self) -> threading.Thread:
        """Run load_model() on a daemon thread and return the thread."""
        thread = threading.Thread(target=self.load_model, name="detector-loader", daemon=True)
        thread.start()
        return thread

    def close(self) -> None:
        """
        Release the detector. Safe to call multiple times.

        Waits up to orchestrator.lock_timeout_ms for an in-flight pass. If the
        pass is still running after that, the detector is dropped anyway: the
        pass holds its own reference and finishes against it.
        """
        acquired = self._pass_lock.acquire(timeout=self._lock_timeout_s)
        if not acquired:
            logging.warning(
                f"Detection pass still running after {self._lock_timeout_s:.1f}s, closing without waiting"
            )
        try:
            detector, self._detector = self._detector, None
            self._backend = None
        finally:
            if acquired:
                self._pass_lock.release()
        if detector is not None and hasattr(detector, "close"):
            try:
                detector.close()
            except Exception as e:
                logging.warning(f"Error closing detector: {e}")
        logging.info("Detection orchestrator closed")

    def reset(self) -> bool:
        """
        Start a new session: clear events and histories, keep the model.

        Returns:
            False if an in-flight pass did not finish within
            orchestrator.lock_timeout_ms; nothing is cleared in that case.
        """
        if not self._pass_lock.acquire(timeout=self._lock_timeout_s):
            logging.warning(
                f"Detection pass still running after {self._lock_timeout_s:.1f}s, session not reset"
            )
            return False
        try:
            self._event_log.clear()
            self.smoother.reset()
            self._metrics = FocusMetrics()
            self._last_start = None
            self._session_start = self._clock()
            self.stats = OrchestratorStats()
        finally:
            self._pass_lock.release()
        logging.info("Detection session reset")
        return True

    # -- read-only views -------------------------------------------------

    @property
    def metrics(self) -> FocusMetrics:
        return self._metrics

    @property
    def events(self) -> Tuple[DetectionEvent, ...]:
        """Retained events, oldest first (at most event_log_capacity)."""
        return self._event_log.snapshot()

    def session_stats(self) -> SessionStats:
        return compute_session_stats(
            self.events,
            self._metrics,
            session_start=self._session_start,
            now=self._clock(),
        )

    # -- per-frame pass --------------------------------------------------

    def submit_frame(self, frame_data: Optional[FrameData]) -> Optional[PipelineResult]:
        """
        Run one pipeline pass on a decoded frame.

        Returns:
            PipelineResult, or None when the model is not loaded, the frame
            is not decodable, a pass is already in flight, the previous pass
            started less than min_interval_ms ago, or the pass failed.
        """
        if self._detector is None:
            self.stats.dropped_not_ready += 1
            return None
        if frame_data is None or not frame_data.is_decodable:
            self.stats.dropped_undecodable += 1
            return None
        if not self._pass_lock.acquire(blocking=False):
            self.stats.dropped_busy += 1
            return None

        try:
            now = self._clock()
            min_interval_s = self.config.orchestrator.min_interval_ms / 1000.0
            if self._last_start is not None and now - self._last_start < min_interval_s:
                self.stats.dropped_rate_limited += 1
                return None
            # close() may have run between the readiness check and the lock
            detector = self._detector
            if detector is None:
                self.stats.dropped_not_ready += 1
                return None

            self._last_start = now
            self._detecting = True
            started = time.perf_counter()
            bitmap = None
            try:
                bitmap = self.preprocessor.process(frame_data)
                if bitmap is None:
                    self.stats.dropped_undecodable += 1
                    return None
                result = self._run_pass(detector, bitmap, now)
                self.stats.passes += 1
                self.stats.last_latency_ms = (time.perf_counter() - started) * 1000.0
                return result
            except Exception as e:
                self.stats.failures += 1
                logging.warning(f"Detection pass failed: {e}")
                return None
            finally:
                del bitmap
                self._detecting = False
        finally:
            self._pass_lock.release()

    def _run_pass(self, detector: Detector, bitmap: np.ndarray, now: float) -> PipelineResult:
        raw = self._validate(detector.detect(bitmap))

        filtered = self.class_filter.filter(raw)
        suppressed = self.suppressor.suppress(filtered)
        smoothed = self.smoother.smooth(suppressed, now)

        frame_h, frame_w = bitmap.shape[:2]
        groups = self.scorer.partition(smoothed)
        metrics = self.scorer.score_groups(groups, frame_w, frame_h)

        new_events = [
            DetectionEvent.from_prediction(pred, now, index, device_class=self.config.device_class)
            for index, pred in enumerate(smoothed)
        ]
        self._event_log.extend(new_events)
        self._metrics = metrics

        logging.debug(
            f"Pass: raw={len(raw)} filtered={len(filtered)} suppressed={len(suppressed)} "
            f"persons={len(groups.persons)} devices={len(groups.devices)} "
            f"focus={metrics.focus_score}"
        )

        return PipelineResult(
            smoothed_predictions=smoothed,
            new_detections=new_events,
            person_count=len(groups.persons),
            mobile_count=len(groups.devices),
            total_device_count=len(groups.devices) + len(groups.computers),
            metrics=metrics,
            frame_size=(frame_w, frame_h),
        )

    @staticmethod
    def _validate(raw: Any) -> List[Prediction]:
        """Normalise detector output to Predictions, dropping unusable rows."""
        out: List[Prediction] = []
        for item in raw or []:
            if isinstance(item, Prediction):
                # Prediction does not check its fields on construction
                bbox = item.bbox.as_tuple() if isinstance(item.bbox, BoundingBox) else item.bbox
                pred = Prediction.from_raw(item.class_name, item.confidence, bbox)
                if pred is not None:
                    out.append(pred)
                else:
                    logging.debug(f"Dropping invalid prediction: {item!r}")
            elif isinstance(item, dict):
                out.extend(predictions_from_raw([item]))
            else:
                logging.debug(f"Dropping unexpected detector output: {item!r}")
        return out

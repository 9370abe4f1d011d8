"""
Focus Guard: proctoring detection runner.

Reads frames from a webcam or recorded video, ticks the detection
orchestrator at a fixed interval and logs focus metrics and events.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --source: Override source.device_id (camera index or video path)
    --display: Show annotated frames in a window
    --web: Serve the read-only API while running
"""

import os
import sys
import argparse
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np
import yaml

from models.config import Config
from models.metrics import PipelineResult
from observation import CaptureConfig, CaptureSource
from ops.logging import setup_logging
from pipeline.engine import DetectionOrchestrator
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
KNOWN_BACKENDS = ('cuda', 'mps', 'cpu')


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_unit(value: Any) -> bool:
    return _is_number(value) and 0 <= value <= 1


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Sections are optional (defaults apply); present values must be sane.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    for section in ('log_path', 'log_level'):
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    # Preprocess
    preprocess = config.get('preprocess', {}) or {}
    if 'max_dimension' in preprocess:
        md = preprocess['max_dimension']
        if not isinstance(md, int) or md <= 0:
            return False, "preprocess.max_dimension must be a positive integer"
    for key in ('contrast', 'brightness'):
        if key in preprocess and not _is_number(preprocess[key]):
            return False, f"preprocess.{key} must be a number"

    # Filter
    filt = config.get('filter', {}) or {}
    thresholds = filt.get('class_thresholds', {}) or {}
    if not isinstance(thresholds, dict):
        return False, "filter.class_thresholds must be a mapping of class name to threshold"
    for name, value in thresholds.items():
        if not _is_unit(value):
            return False, f"filter.class_thresholds.{name} must be between 0 and 1"
    if 'default_threshold' in filt and not _is_unit(filt['default_threshold']):
        return False, "filter.default_threshold must be between 0 and 1"
    for key in ('mobile_portrait_range', 'mobile_landscape_range'):
        if key in filt:
            rng = filt[key]
            if not isinstance(rng, list) or len(rng) != 2 or not all(_is_number(x) for x in rng) or rng[0] > rng[1]:
                return False, f"filter.{key} must be [low, high]"

    # Suppression
    suppression = config.get('suppression', {}) or {}
    for key in ('device_iou_threshold', 'iou_threshold'):
        if key in suppression and not _is_unit(suppression[key]):
            return False, f"suppression.{key} must be between 0 and 1"

    # Smoothing
    smoothing = config.get('smoothing', {}) or {}
    if 'window_ms' in smoothing and (not _is_number(smoothing['window_ms']) or smoothing['window_ms'] <= 0):
        return False, "smoothing.window_ms must be a positive number"
    for key in ('device_match_iou', 'match_iou'):
        if key in smoothing and not _is_unit(smoothing[key]):
            return False, f"smoothing.{key} must be between 0 and 1"
    for key in ('min_history', 'min_matches'):
        if key in smoothing and (not isinstance(smoothing[key], int) or smoothing[key] < 1):
            return False, f"smoothing.{key} must be a positive integer"

    # Detector
    detector = config.get('detector', {}) or {}
    if 'model' in detector and (not isinstance(detector['model'], str) or not detector['model']):
        return False, "detector.model must be a non-empty string"
    if 'backends' in detector:
        backends = detector['backends']
        if not isinstance(backends, list) or not backends:
            return False, "detector.backends must be a non-empty list"
        for backend in backends:
            if not isinstance(backend, str) or backend.split(":")[0] not in KNOWN_BACKENDS:
                return False, f"detector.backends entries must be one of: {', '.join(KNOWN_BACKENDS)}"

    # Orchestrator
    orchestrator = config.get('orchestrator', {}) or {}
    if 'min_interval_ms' in orchestrator and (
        not _is_number(orchestrator['min_interval_ms']) or orchestrator['min_interval_ms'] < 0
    ):
        return False, "orchestrator.min_interval_ms must be a non-negative number"
    if 'event_log_capacity' in orchestrator and (
        not isinstance(orchestrator['event_log_capacity'], int) or orchestrator['event_log_capacity'] <= 0
    ):
        return False, "orchestrator.event_log_capacity must be a positive integer"
    if 'lock_timeout_ms' in orchestrator and (
        not _is_number(orchestrator['lock_timeout_ms']) or orchestrator['lock_timeout_ms'] <= 0
    ):
        return False, "orchestrator.lock_timeout_ms must be a positive number"

    # Source
    source = config.get('source', {}) or {}
    if 'device_id' in source:
        device_id = source['device_id']
        if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
            return False, "source.device_id must be an integer (index) or string (path)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "source.device_id integer must be non-negative"
    if 'tick_interval_ms' in source and (not _is_number(source['tick_interval_ms']) or source['tick_interval_ms'] <= 0):
        return False, "source.tick_interval_ms must be a positive number"

    return True, None


def draw_overlays(frame: np.ndarray, result: PipelineResult) -> np.ndarray:
    """Draw smoothed boxes and the metrics line onto a copy of the frame."""
    COLOR_PERSON = (0, 255, 0)  # Green
    COLOR_DEVICE = (0, 0, 255)  # Red
    COLOR_OTHER = (0, 200, 255)  # Amber

    out = frame.copy()
    # Boxes are in processed-frame pixels; scale back to the display frame
    if result.frame_size:
        sx = out.shape[1] / result.frame_size[0]
        sy = out.shape[0] / result.frame_size[1]
    else:
        sx = sy = 1.0

    for pred in result.smoothed_predictions:
        if pred.class_name == "person":
            color = COLOR_PERSON
        elif "phone" in pred.class_name:
            color = COLOR_DEVICE
        else:
            color = COLOR_OTHER
        x1, y1, x2, y2 = pred.bbox.as_xyxy()
        p1 = (int(x1 * sx), int(y1 * sy))
        p2 = (int(x2 * sx), int(y2 * sy))
        cv2.rectangle(out, p1, p2, color, 2)
        label = f"{pred.class_name} {pred.confidence:.2f}"
        cv2.putText(out, label, (p1[0] + 2, max(12, p1[1] - 4)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)

    m = result.metrics
    summary = (
        f"focus {m.focus_score}  eye {m.eye_contact_score}  "
        f"head {m.head_pose_score}  overall {m.overall_attention}"
    )
    cv2.putText(out, summary, (10, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
    return out


def start_web_server(cfg: Config, orchestrator: DetectionOrchestrator) -> threading.Thread:
    """Run the API with uvicorn in a daemon thread."""
    import uvicorn
    from web.app import create_app

    app = create_app(orchestrator)
    server = uvicorn.Server(uvicorn.Config(app, host=cfg.web.host, port=cfg.web.port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="web-api", daemon=True)
    thread.start()
    logging.info(f"Web API listening on http://{cfg.web.host}:{cfg.web.port}/api")
    return thread


def run(cfg: Config, display: bool = False, stats_log_interval: float = 60.0) -> int:
    """
    Main loop: read frames continuously, submit one every tick_interval_ms.

    Returns a process exit code.
    """
    orchestrator = DetectionOrchestrator(cfg)
    web_state.set_orchestrator(orchestrator)

    if not orchestrator.load_model():
        logging.error("No detector backend could be loaded; exiting")
        return 1
    logging.info(f"Detector ready (backend={orchestrator.backend})")

    source = CaptureSource(CaptureConfig.from_source_config(cfg.source, name="exam-camera"))
    tick_s = cfg.source.tick_interval_ms / 1000.0
    last_stats_log = time.time()
    last_result: Optional[PipelineResult] = None

    try:
        source.open()
        for frame_data, due in source.paced(tick_s):
            web_state.mark_frame(frame_data.timestamp)
            now = time.time()

            if due:
                result = orchestrator.submit_frame(frame_data)
                if result is not None:
                    last_result = result
                    for event in result.new_detections:
                        logging.debug(f"Event {event.id}: {event.type.value} - {event.description}")
                    if result.mobile_count:
                        logging.info(f"Device detected: mobile_count={result.mobile_count}")
                    if result.person_count != 1:
                        logging.info(f"Person count: {result.person_count}")

            if now - last_stats_log >= stats_log_interval:
                m = orchestrator.metrics
                logging.info(
                    f"Pipeline stats: {orchestrator.stats.to_dict()}, "
                    f"focus={m.focus_score}, overall={m.overall_attention}, "
                    f"events={len(orchestrator.events)}"
                )
                last_stats_log = now

            if display:
                shown = draw_overlays(frame_data.frame, last_result) if last_result else frame_data.frame
                cv2.imshow("Focus Guard", shown)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except RuntimeError as e:
        logging.error(f"Frame source error: {e}")
        return 1
    finally:
        source.close()
        orchestrator.close()
        if display:
            cv2.destroyAllWindows()

    stats = orchestrator.session_stats()
    logging.info(f"Session summary: {stats.to_dict()}")
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Focus Guard - proctoring detection pipeline')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Camera index or video file path (overrides config)')
    parser.add_argument('--display', action='store_true',
                        help='Enable visual display')
    parser.add_argument('--web', action='store_true',
                        help='Serve the read-only API')
    args = parser.parse_args()

    raw_cfg = load_config(args.config)
    if args.source is not None:
        device = int(args.source) if args.source.isdigit() else args.source
        raw_cfg.setdefault('source', {})['device_id'] = device

    is_valid, error = validate_config(raw_cfg)
    if not is_valid:
        print(f"Invalid configuration: {error}", file=sys.stderr)
        sys.exit(1)

    cfg = Config.from_dict(raw_cfg)
    setup_logging(cfg.log_path, cfg.log_level)
    logging.info("Focus Guard starting")

    if args.web or cfg.web.enabled:
        # The API reads the orchestrator through web_state once run() sets it
        start_web_server(cfg, orchestrator=None)

    sys.exit(run(cfg, display=args.display))


if __name__ == "__main__":
    main()

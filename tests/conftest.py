"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import Config
from models.detection import BoundingBox, Prediction
from models.frame import FrameData


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedDetector:
    """Returns the next scripted output on each call; repeats the last one."""

    def __init__(self, *outputs):
        self.outputs = list(outputs) or [[]]
        self.calls = 0
        self.frames = []
        self.closed = False

    def detect(self, frame):
        self.frames.append(frame)
        out = self.outputs[min(self.calls, len(self.outputs) - 1)]
        self.calls += 1
        if isinstance(out, Exception):
            raise out
        return list(out)

    def close(self):
        self.closed = True


class BlockingDetector:
    """Blocks inside detect() until released, to hold a pass in flight."""

    def __init__(self, output=None):
        self.output = output or []
        self.entered = threading.Event()
        self.release = threading.Event()

    def detect(self, frame):
        self.entered.set()
        self.release.wait(timeout=5)
        return list(self.output)


def pred(class_name, confidence, x=0.0, y=0.0, w=10.0, h=10.0):
    """Shorthand for building a Prediction."""
    return Prediction(class_name=class_name, confidence=confidence, bbox=BoundingBox(x, y, w, h))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def frame_data():
    """A decodable 640x480 black frame (no resize needed)."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    return FrameData.from_numpy(frame, timestamp=1000.0, frame_index=1, source="test")


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
preprocess:
  max_dimension: 640
  contrast: 1.15
  brightness: 8

detector:
  model: "yolov8n.pt"
  backends: ["cuda", "mps", "cpu"]

orchestrator:
  min_interval_ms: 100
  event_log_capacity: 50

source:
  device_id: 0
  tick_interval_ms: 1000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "preprocess": {"max_dimension": 640, "contrast": 1.15, "brightness": 8},
        "filter": {
            "default_threshold": 0.5,
            "class_thresholds": {"cell phone": 0.25, "person": 0.5},
            "mobile_portrait_range": [0.35, 0.75],
            "mobile_landscape_range": [1.4, 2.8],
        },
        "suppression": {"device_iou_threshold": 0.2, "iou_threshold": 0.3},
        "smoothing": {"window_ms": 600, "device_match_iou": 0.4, "match_iou": 0.5},
        "detector": {"model": "yolov8n.pt", "backends": ["cuda", "mps", "cpu"]},
        "orchestrator": {"min_interval_ms": 100, "event_log_capacity": 50},
        "source": {"device_id": 0, "tick_interval_ms": 1000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }

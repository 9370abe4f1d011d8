"""
Tests for the CLI runner loop, overlay drawing and logging setup.
"""

import logging
import time
from unittest.mock import patch

import numpy as np
import pytest

import main
from conftest import ScriptedDetector, pred
from models.config import Config
from models.frame import FrameData
from observation.base import FrameSource, FrameSourceConfig
from ops.logging import setup_logging
from pipeline.engine import DetectionOrchestrator
from web.state import state


class FakeSource(FrameSource):
    """Yields a fixed number of black frames."""

    def __init__(self, count=3):
        super().__init__(FrameSourceConfig(name="fake"))
        self.count = count
        self.was_opened = False
        self.closed = False

    def open(self):
        self._opened = True
        self.was_opened = True

    def grab(self):
        if self.frames_read >= self.count:
            return None
        self.frames_read += 1
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self.frames_read)

    def close(self):
        self._opened = False
        self.closed = True


@pytest.fixture(autouse=True)
def reset_state():
    yield
    state.set_orchestrator(None)


def _patched_run(cfg, factory, source):
    built = []

    def build(config):
        orchestrator = DetectionOrchestrator(config, detector_factory=factory)
        built.append(orchestrator)
        return orchestrator

    with patch.object(main, "DetectionOrchestrator", side_effect=build), \
            patch.object(main, "CaptureSource", return_value=source):
        code = main.run(cfg)
    return code, built[0]


class TestRun:
    def test_processes_frames(self):
        cfg = Config()
        cfg.source.tick_interval_ms = 1
        source = FakeSource(count=3)
        detector = ScriptedDetector([pred("person", 0.9, 220, 40, 200, 400)])

        code, orchestrator = _patched_run(cfg, lambda backend: detector, source)

        assert code == 0
        assert source.was_opened and source.closed
        assert detector.calls >= 1
        assert orchestrator.stats.passes >= 1
        assert not orchestrator.is_ready  # closed on exit
        assert state.get_orchestrator() is orchestrator

    def test_load_failure_exits_nonzero(self):
        def factory(backend):
            raise RuntimeError("no device")

        source = FakeSource()
        code, _ = _patched_run(Config(), factory, source)
        assert code == 1
        assert not source.was_opened


class TestDrawOverlays:
    def test_draws_on_copy(self):
        frame = np.zeros((720, 1280, 3), dtype=np.uint8)
        orchestrator = DetectionOrchestrator(
            Config(),
            detector_factory=lambda b: ScriptedDetector([pred("cell phone", 0.8, 300, 200, 40, 80)]),
        )
        orchestrator.load_model()
        result = orchestrator.submit_frame(FrameData.from_numpy(frame, timestamp=0.0))

        out = main.draw_overlays(frame, result)
        assert out.shape == frame.shape
        assert out.any()
        assert not frame.any()


class TestSetupLogging:
    def test_creates_log_dir_and_quiets_libraries(self, tmp_path):
        log_path = tmp_path / "logs" / "focus_guard.log"
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            setup_logging(str(log_path), "INFO")
            assert log_path.parent.is_dir()
            assert logging.getLogger("ultralytics").level == logging.WARNING
        finally:
            for handler in root.handlers:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()

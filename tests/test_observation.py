"""
Tests for frame sources.
"""

import time
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from conftest import FakeClock
from models.config import SourceConfig
from models.frame import FrameData
from observation.base import FrameSource, FrameSourceConfig
from observation.capture import CaptureConfig, CaptureSource

FRAME = np.zeros((480, 640, 3), dtype=np.uint8)


class ListSource(FrameSource):
    """In-memory source over a list of arrays."""

    def __init__(self, frames, config=None):
        super().__init__(config or FrameSourceConfig(name="memory"))
        self._frames = list(frames)

    def open(self):
        self._opened = True
        self.frames_read = 0

    def grab(self):
        if self.frames_read >= len(self._frames):
            return None
        frame = self._frames[self.frames_read]
        self.frames_read += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self.frames_read, source=self.config.name)

    def close(self):
        self._opened = False


def _capture(reads, opened=True):
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.side_effect = reads
    cap.get.return_value = 0
    return cap


class TestFrameSource:
    def test_stream_until_exhausted(self):
        with ListSource([FRAME] * 3) as source:
            frames = list(source.stream())
        assert [f.frame_index for f in frames] == [1, 2, 3]
        assert all(f.source == "memory" for f in frames)
        assert not source.opened

    def test_stream_requires_open(self):
        with pytest.raises(RuntimeError):
            list(ListSource([FRAME]).stream())

    def test_paced_marks_one_frame_per_interval(self):
        clock = FakeClock(0.0)
        source = ListSource([FRAME] * 6)
        source.open()

        due = []
        for _, is_due in source.paced(1.0, clock=clock):
            due.append(is_due)
            clock.advance(0.4)

        # frames at t = 0.0, 0.4, 0.8, 1.2, 1.6, 2.0
        assert due == [True, False, False, True, False, False]


class TestCaptureConfig:
    def test_from_source_config(self):
        cfg = CaptureConfig.from_source_config(
            SourceConfig(device_id="exam.mp4", resolution=[1280, 720], loop=True),
            name="exam",
        )
        assert cfg.name == "exam"
        assert cfg.device == "exam.mp4"
        assert cfg.resolution == (1280, 720)
        assert cfg.loop is True

    def test_defaults(self):
        cfg = CaptureConfig.from_source_config(SourceConfig())
        assert cfg.device == 0
        assert cfg.resolution is None


class TestCaptureSource:
    def test_reads_camera_frames(self):
        cap = _capture([(True, FRAME), (True, FRAME), (False, None)])
        with patch("observation.capture.cv2.VideoCapture", return_value=cap):
            source = CaptureSource(CaptureConfig(name="cam", device=0, resolution=(1280, 720)))
            source.open()
            frames = list(source.stream())
            source.close()

        assert len(frames) == 2
        assert frames[0].size == (640, 480)
        assert frames[1].frame_index == 2
        assert frames[1].source == "cam"
        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_WIDTH, 1280)
        cap.release.assert_called_once()

    def test_open_failure_raises(self):
        cap = _capture([], opened=False)
        with patch("observation.capture.cv2.VideoCapture", return_value=cap):
            source = CaptureSource(CaptureConfig(device=0, open_attempts=1))
            with pytest.raises(RuntimeError):
                source.open()
        assert not source.opened
        cap.release.assert_called_once()

    def test_camera_open_retries(self):
        bad = _capture([], opened=False)
        good = _capture([(False, None)])
        with patch("observation.capture.cv2.VideoCapture", side_effect=[bad, good]), \
                patch("observation.capture.time.sleep") as sleep:
            source = CaptureSource(CaptureConfig(device=0, open_attempts=3))
            source.open()
        assert source.opened
        sleep.assert_called_once_with(2)

    def test_missing_file_not_retried(self, tmp_path):
        video = tmp_path / "broken.mp4"
        video.write_bytes(b"\x00")
        with patch("observation.capture.cv2.VideoCapture", return_value=_capture([], opened=False)) as vc, \
                patch("observation.capture.time.sleep") as sleep:
            with pytest.raises(RuntimeError):
                CaptureSource(CaptureConfig(device=str(video), open_attempts=3)).open()
        assert vc.call_count == 1
        sleep.assert_not_called()

    def test_video_file_loops(self, tmp_path):
        video = tmp_path / "session.mp4"
        video.write_bytes(b"\x00")
        cap = _capture([(True, FRAME), (False, None), (True, FRAME), (False, None), (False, None)])
        with patch("observation.capture.cv2.VideoCapture", return_value=cap):
            source = CaptureSource(CaptureConfig(device=str(video), loop=True))
            source.open()
            frames = list(source.stream())

        assert len(frames) == 2
        cap.set.assert_any_call(cv2.CAP_PROP_POS_FRAMES, 0)

    def test_grab_before_open(self):
        assert CaptureSource(CaptureConfig()).grab() is None

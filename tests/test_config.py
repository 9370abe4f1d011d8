"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_minimal_config_passes(self):
        """Only log settings are required; sections fall back to defaults."""
        is_valid, error = validate_config({"log_path": "logs/x.log", "log_level": "DEBUG"})
        assert is_valid is True

    def test_missing_log_level(self, valid_config):
        """Missing log_level fails validation."""
        del valid_config["log_level"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_level" in error

    def test_threshold_out_of_range(self, valid_config):
        valid_config["filter"]["class_thresholds"]["person"] = 1.5
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "person" in error

    def test_bad_aspect_range(self, valid_config):
        valid_config["filter"]["mobile_portrait_range"] = [0.75, 0.35]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "mobile_portrait_range" in error

    def test_suppression_iou_out_of_range(self, valid_config):
        valid_config["suppression"]["device_iou_threshold"] = -0.1
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "device_iou_threshold" in error

    def test_empty_backends(self, valid_config):
        valid_config["detector"]["backends"] = []
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "backends" in error

    def test_unknown_backend(self, valid_config):
        valid_config["detector"]["backends"] = ["tpu"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False

    def test_indexed_cuda_backend_allowed(self, valid_config):
        valid_config["detector"]["backends"] = ["cuda:1", "cpu"]
        assert validate_config(valid_config)[0] is True

    @pytest.mark.parametrize("capacity", [0, -5, 2.5])
    def test_event_log_capacity(self, valid_config, capacity):
        valid_config["orchestrator"]["event_log_capacity"] = capacity
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "event_log_capacity" in error

    def test_negative_interval(self, valid_config):
        valid_config["orchestrator"]["min_interval_ms"] = -1
        assert validate_config(valid_config)[0] is False

    @pytest.mark.parametrize("timeout", [0, -1, "soon"])
    def test_lock_timeout(self, valid_config, timeout):
        valid_config["orchestrator"]["lock_timeout_ms"] = timeout
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "lock_timeout_ms" in error

    def test_zero_max_dimension(self, valid_config):
        valid_config["preprocess"]["max_dimension"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "max_dimension" in error

    def test_video_path_source(self, valid_config):
        valid_config["source"]["device_id"] = "recordings/session.mp4"
        assert validate_config(valid_config)[0] is True

    def test_negative_camera_index(self, valid_config):
        valid_config["source"]["device_id"] = -1
        assert validate_config(valid_config)[0] is False


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_loads_default(self, temp_config_dir):
        cfg = load_config(str(temp_config_dir / "config.yaml"))
        assert cfg["orchestrator"]["event_log_capacity"] == 50
        assert cfg["log_level"] == "INFO"

    def test_local_overrides_merge(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
orchestrator:
  min_interval_ms: 250
log_level: "DEBUG"
""")
        cfg = load_config(str(temp_config_dir / "config.yaml"))
        assert cfg["orchestrator"]["min_interval_ms"] == 250
        assert cfg["orchestrator"]["event_log_capacity"] == 50
        assert cfg["log_level"] == "DEBUG"

    def test_explicit_path_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: DEBUG\n")
        explicit = temp_config_dir / "exam.yaml"
        explicit.write_text("log_level: WARNING\nsource:\n  device_id: exam.mp4\n")

        cfg = load_config(str(explicit))
        assert cfg["log_level"] == "WARNING"
        assert cfg["source"]["device_id"] == "exam.mp4"
        assert cfg["source"]["tick_interval_ms"] == 1000

    def test_loaded_config_is_valid_and_typed(self, temp_config_dir):
        raw = load_config(str(temp_config_dir / "config.yaml"))
        assert validate_config(raw) == (True, None)
        cfg = Config.from_dict(raw)
        assert cfg.detector.backends == ["cuda", "mps", "cpu"]
        assert cfg.preprocess.brightness == 8

"""
Typed configuration models matching the YAML config structure.

Scoring and filtering constants are empirical and tunable; they are not
physically derived and can be overridden from config/config.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# COCO label of the small-device class
DEVICE_CLASS = "cell phone"

DEFAULT_CLASS_THRESHOLDS: Dict[str, float] = {
    "cell phone": 0.25,
    "person": 0.5,
    "laptop": 0.6,
    "tablet": 0.5,
    "book": 0.3,
    "bottle": 0.4,
    "cup": 0.4,
    "mouse": 0.5,
    "keyboard": 0.6,
    "remote": 0.4,
    "tv": 0.6,
    "monitor": 0.6,
}

PERSON_CLASSES = ["person"]
COMPUTER_CLASSES = ["laptop", "tablet", "keyboard", "mouse", "monitor"]
DISTRACTION_CLASSES = ["bottle", "cup", "book", "remote", "tv"]


def _range(value: Any, default: Tuple[float, float]) -> Tuple[float, float]:
    if value is None:
        return default
    return (float(value[0]), float(value[1]))


@dataclass
class PreprocessConfig:
    """Frame normalisation before inference."""
    max_dimension: int = 640
    contrast: float = 1.15
    brightness: float = 8.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PreprocessConfig":
        return cls(
            max_dimension=d.get("max_dimension", 640),
            contrast=d.get("contrast", 1.15),
            brightness=d.get("brightness", 8.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_dimension": self.max_dimension,
            "contrast": self.contrast,
            "brightness": self.brightness,
        }


@dataclass
class FilterConfig:
    """Per-class confidence thresholds and device plausibility checks."""
    class_thresholds: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_CLASS_THRESHOLDS))
    default_threshold: float = 0.5
    mobile_portrait_range: Tuple[float, float] = (0.35, 0.75)
    mobile_landscape_range: Tuple[float, float] = (1.4, 2.8)
    mobile_min_area: float = 1200.0
    mobile_min_confidence: float = 0.25

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilterConfig":
        # Overrides are merged onto the default table rather than replacing it
        thresholds = dict(DEFAULT_CLASS_THRESHOLDS)
        thresholds.update(d.get("class_thresholds") or {})
        return cls(
            class_thresholds=thresholds,
            default_threshold=d.get("default_threshold", 0.5),
            mobile_portrait_range=_range(d.get("mobile_portrait_range"), (0.35, 0.75)),
            mobile_landscape_range=_range(d.get("mobile_landscape_range"), (1.4, 2.8)),
            mobile_min_area=d.get("mobile_min_area", 1200.0),
            mobile_min_confidence=d.get("mobile_min_confidence", 0.25),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_thresholds": dict(self.class_thresholds),
            "default_threshold": self.default_threshold,
            "mobile_portrait_range": list(self.mobile_portrait_range),
            "mobile_landscape_range": list(self.mobile_landscape_range),
            "mobile_min_area": self.mobile_min_area,
            "mobile_min_confidence": self.mobile_min_confidence,
        }


@dataclass
class SuppressionConfig:
    """Non-maximum suppression IoU thresholds."""
    device_iou_threshold: float = 0.2
    iou_threshold: float = 0.3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SuppressionConfig":
        return cls(
            device_iou_threshold=d.get("device_iou_threshold", 0.2),
            iou_threshold=d.get("iou_threshold", 0.3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_iou_threshold": self.device_iou_threshold,
            "iou_threshold": self.iou_threshold,
        }


@dataclass
class SmoothingConfig:
    """Temporal smoothing window and fusion parameters."""
    window_ms: float = 600.0
    device_match_iou: float = 0.4
    match_iou: float = 0.5
    min_history: int = 2
    min_matches: int = 2
    device_boost: float = 1.15
    boost: float = 1.10

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SmoothingConfig":
        return cls(
            window_ms=d.get("window_ms", 600.0),
            device_match_iou=d.get("device_match_iou", 0.4),
            match_iou=d.get("match_iou", 0.5),
            min_history=d.get("min_history", 2),
            min_matches=d.get("min_matches", 2),
            device_boost=d.get("device_boost", 1.15),
            boost=d.get("boost", 1.10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_ms": self.window_ms,
            "device_match_iou": self.device_match_iou,
            "match_iou": self.match_iou,
            "min_history": self.min_history,
            "min_matches": self.min_matches,
            "device_boost": self.device_boost,
            "boost": self.boost,
        }


@dataclass
class ScoringConfig:
    """
    Attention scoring policy table.

    Linear heuristics, not a learned model. Every weight here is a tuning
    knob.
    """
    person_classes: List[str] = field(default_factory=lambda: list(PERSON_CLASSES))
    computer_classes: List[str] = field(default_factory=lambda: list(COMPUTER_CLASSES))
    distraction_classes: List[str] = field(default_factory=lambda: list(DISTRACTION_CLASSES))

    # focus
    focus_base: float = 80.0
    device_penalty: float = 35.0
    device_confidence_scale: float = 1.5
    device_multiplier_cap: float = 1.5
    computer_penalty: float = 15.0
    distraction_penalty: float = 8.0
    single_person_bonus: float = 5.0
    single_person_bonus_confidence: float = 0.7

    # eye contact
    no_person_eye_contact: float = 20.0
    eye_contact_base: float = 60.0
    eye_contact_confidence_weight: float = 25.0
    eye_contact_centering_weight: float = 15.0
    eye_contact_device_penalty: float = 20.0
    multi_person_eye_contact_step: float = 25.0
    multi_person_eye_contact_floor: float = 30.0

    # head pose
    head_pose_default: float = 60.0
    head_pose_base: float = 50.0
    head_pose_confidence_weight: float = 30.0
    head_pose_size_weight: float = 1000.0
    head_pose_size_cap: float = 40.0
    head_pose_device_penalty: float = 15.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoringConfig":
        defaults = cls()
        kwargs = {}
        for name in defaults.to_dict():
            if name in d and d[name] is not None:
                value = d[name]
                kwargs[name] = list(value) if isinstance(value, (list, tuple)) else value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "person_classes": list(self.person_classes),
            "computer_classes": list(self.computer_classes),
            "distraction_classes": list(self.distraction_classes),
            "focus_base": self.focus_base,
            "device_penalty": self.device_penalty,
            "device_confidence_scale": self.device_confidence_scale,
            "device_multiplier_cap": self.device_multiplier_cap,
            "computer_penalty": self.computer_penalty,
            "distraction_penalty": self.distraction_penalty,
            "single_person_bonus": self.single_person_bonus,
            "single_person_bonus_confidence": self.single_person_bonus_confidence,
            "no_person_eye_contact": self.no_person_eye_contact,
            "eye_contact_base": self.eye_contact_base,
            "eye_contact_confidence_weight": self.eye_contact_confidence_weight,
            "eye_contact_centering_weight": self.eye_contact_centering_weight,
            "eye_contact_device_penalty": self.eye_contact_device_penalty,
            "multi_person_eye_contact_step": self.multi_person_eye_contact_step,
            "multi_person_eye_contact_floor": self.multi_person_eye_contact_floor,
            "head_pose_default": self.head_pose_default,
            "head_pose_base": self.head_pose_base,
            "head_pose_confidence_weight": self.head_pose_confidence_weight,
            "head_pose_size_weight": self.head_pose_size_weight,
            "head_pose_size_cap": self.head_pose_size_cap,
            "head_pose_device_penalty": self.head_pose_device_penalty,
        }


@dataclass
class DetectorConfig:
    """YOLO detector configuration."""
    model: str = "yolov8n.pt"
    backends: List[str] = field(default_factory=lambda: ["cuda", "mps", "cpu"])
    conf_threshold: float = 0.2
    iou_threshold: float = 0.45
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            backends=list(d.get("backends") or ["cuda", "mps", "cpu"]),
            conf_threshold=d.get("conf_threshold", 0.2),
            iou_threshold=d.get("iou_threshold", 0.45),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "model": self.model,
            "backends": list(self.backends),
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class OrchestratorConfig:
    """Rate control and event log sizing."""
    min_interval_ms: float = 100.0
    event_log_capacity: int = 50
    # close/reset wait this long for an in-flight pass before giving up
    lock_timeout_ms: float = 5000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OrchestratorConfig":
        return cls(
            min_interval_ms=d.get("min_interval_ms", 100.0),
            event_log_capacity=d.get("event_log_capacity", 50),
            lock_timeout_ms=d.get("lock_timeout_ms", 5000.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_interval_ms": self.min_interval_ms,
            "event_log_capacity": self.event_log_capacity,
            "lock_timeout_ms": self.lock_timeout_ms,
        }


@dataclass
class SourceConfig:
    """Frame source used by the CLI runner."""
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = None
    tick_interval_ms: float = 1000.0
    loop: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution"),
            tick_interval_ms=d.get("tick_interval_ms", 1000.0),
            loop=d.get("loop", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "device_id": self.device_id,
            "tick_interval_ms": self.tick_interval_ms,
            "loop": self.loop,
        }
        if self.resolution is not None:
            d["resolution"] = self.resolution
        return d


@dataclass
class WebConfig:
    """Read-only HTTP API."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "127.0.0.1"),
            port=d.get("port", 8000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    device_class: str = DEVICE_CLASS
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    suppression: SuppressionConfig = field(default_factory=SuppressionConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/focus_guard.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            device_class=d.get("device_class", DEVICE_CLASS),
            preprocess=PreprocessConfig.from_dict(d.get("preprocess") or {}),
            filter=FilterConfig.from_dict(d.get("filter") or {}),
            suppression=SuppressionConfig.from_dict(d.get("suppression") or {}),
            smoothing=SmoothingConfig.from_dict(d.get("smoothing") or {}),
            scoring=ScoringConfig.from_dict(d.get("scoring") or {}),
            detector=DetectorConfig.from_dict(d.get("detector") or {}),
            orchestrator=OrchestratorConfig.from_dict(d.get("orchestrator") or {}),
            source=SourceConfig.from_dict(d.get("source") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/focus_guard.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "device_class": self.device_class,
            "preprocess": self.preprocess.to_dict(),
            "filter": self.filter.to_dict(),
            "suppression": self.suppression.to_dict(),
            "smoothing": self.smoothing.to_dict(),
            "scoring": self.scoring.to_dict(),
            "detector": self.detector.to_dict(),
            "orchestrator": self.orchestrator.to_dict(),
            "source": self.source.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

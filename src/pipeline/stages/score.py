"""
Score stage: turn the smoothed prediction set into attention metrics.

These are hand-tuned linear heuristics over the current frame only. Treat
the numbers in ScoringConfig as a policy table, not as measurements.

| metric      | inputs                                                    |
|-------------|-----------------------------------------------------------|
| focus       | base 80, device/computer/distraction penalties, +5 bonus  |
| eye contact | person count, confidence, horizontal centering, devices   |
| head pose   | single person confidence and relative box area, devices   |
| overall     | mean of the three above                                   |
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from models.config import DEVICE_CLASS, ScoringConfig
from models.detection import Prediction
from models.metrics import FocusMetrics


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


@dataclass(frozen=True)
class RoleGroups:
    """Smoothed predictions partitioned by semantic role."""
    persons: List[Prediction]
    devices: List[Prediction]
    computers: List[Prediction]
    distractions: List[Prediction]


class AttentionScorer:
    """Computes FocusMetrics for one frame."""

    def __init__(self, config: Optional[ScoringConfig] = None, device_class: str = DEVICE_CLASS):
        self.config = config or ScoringConfig()
        self.device_class = device_class

    def partition(self, predictions: List[Prediction]) -> RoleGroups:
        cfg = self.config
        return RoleGroups(
            persons=[p for p in predictions if p.class_name in cfg.person_classes],
            devices=[p for p in predictions if p.class_name == self.device_class],
            computers=[p for p in predictions if p.class_name in cfg.computer_classes],
            distractions=[p for p in predictions if p.class_name in cfg.distraction_classes],
        )

    def focus_score(self, groups: RoleGroups) -> float:
        cfg = self.config
        score = cfg.focus_base
        for device in groups.devices:
            multiplier = min(cfg.device_multiplier_cap, device.confidence * cfg.device_confidence_scale)
            score -= cfg.device_penalty * multiplier
        for computer in groups.computers:
            score -= computer.confidence * cfg.computer_penalty
        for obj in groups.distractions:
            score -= obj.confidence * cfg.distraction_penalty

        if len(groups.persons) == 1 and groups.persons[0].confidence > cfg.single_person_bonus_confidence:
            score += cfg.single_person_bonus

        return clamp_score(score)

    def eye_contact_score(self, groups: RoleGroups, frame_width: int) -> float:
        cfg = self.config
        n = len(groups.persons)
        if n == 0:
            return cfg.no_person_eye_contact

        if n > 1:
            return max(
                cfg.multi_person_eye_contact_floor,
                100.0 - (n - 1) * cfg.multi_person_eye_contact_step,
            )

        person = groups.persons[0]
        center_x, _ = person.bbox.center
        centeredness = 1.0 - abs(center_x / frame_width - 0.5) if frame_width > 0 else 0.0
        score = min(
            100.0,
            cfg.eye_contact_base
            + person.confidence * cfg.eye_contact_confidence_weight
            + centeredness * cfg.eye_contact_centering_weight,
        )
        if groups.devices:
            score -= cfg.eye_contact_device_penalty
        return clamp_score(score)

    def head_pose_score(self, groups: RoleGroups, frame_width: int, frame_height: int) -> float:
        cfg = self.config
        if len(groups.persons) != 1:
            return cfg.head_pose_default

        person = groups.persons[0]
        frame_area = frame_width * frame_height
        relative_area = person.bbox.area / frame_area if frame_area > 0 else 0.0
        size_score = min(cfg.head_pose_size_cap, relative_area * cfg.head_pose_size_weight)
        score = min(
            100.0,
            cfg.head_pose_base + person.confidence * cfg.head_pose_confidence_weight + size_score,
        )
        if groups.devices:
            score -= cfg.head_pose_device_penalty
        return clamp_score(score)

    def score_groups(self, groups: RoleGroups, frame_width: int, frame_height: int) -> FocusMetrics:
        focus = self.focus_score(groups)
        eye = self.eye_contact_score(groups, frame_width)
        head = self.head_pose_score(groups, frame_width, frame_height)
        overall = (focus + eye + head) / 3.0

        return FocusMetrics(
            focus_score=round_half_up(focus),
            eye_contact_score=round_half_up(eye),
            head_pose_score=round_half_up(head),
            overall_attention=round_half_up(clamp_score(overall)),
        )

    def score(self, predictions: List[Prediction], frame_width: int, frame_height: int) -> FocusMetrics:
        """
        Score one frame.

        Args:
            predictions: Smoothed predictions for the frame.
            frame_width: Processed frame width in pixels.
            frame_height: Processed frame height in pixels.
        """
        return self.score_groups(self.partition(predictions), frame_width, frame_height)

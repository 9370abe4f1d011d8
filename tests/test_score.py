"""
Tests for attention scoring heuristics.
"""

import pytest

from conftest import pred
from models.config import ScoringConfig
from pipeline.stages.score import AttentionScorer, round_half_up

FRAME_W, FRAME_H = 640, 480


@pytest.fixture
def scorer():
    return AttentionScorer(ScoringConfig())


def centered_person(confidence=0.9):
    # center x = 320, area 80000 (26% of the frame)
    return pred("person", confidence, 220, 40, 200, 400)


class TestRounding:
    """Scores round half up."""

    @pytest.mark.parametrize("value,expected", [(84.5, 85), (84.49, 84), (0.5, 1), (99.5, 100), (0.0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestSinglePerson:
    """One centered, confident person and nothing else."""

    def test_focus_gets_bonus(self, scorer):
        metrics = scorer.score([centered_person(0.9)], FRAME_W, FRAME_H)
        assert metrics.focus_score == 85

    def test_eye_contact(self, scorer):
        # 60 + 0.9 * 25 + 1.0 * 15 = 97.5
        metrics = scorer.score([centered_person(0.9)], FRAME_W, FRAME_H)
        assert metrics.eye_contact_score == 98

    def test_head_pose_size_capped(self, scorer):
        metrics = scorer.score([centered_person(0.9)], FRAME_W, FRAME_H)
        assert metrics.head_pose_score == 100

    def test_overall_uses_unrounded_scores(self, scorer):
        # (85 + 97.5 + 100) / 3 = 94.17
        metrics = scorer.score([centered_person(0.9)], FRAME_W, FRAME_H)
        assert metrics.overall_attention == 94

    def test_no_bonus_for_low_confidence(self, scorer):
        metrics = scorer.score([centered_person(0.7)], FRAME_W, FRAME_H)
        assert metrics.focus_score == 80

    def test_off_center_person(self, scorer):
        # center x = 64 -> centeredness 1 - |0.1 - 0.5| = 0.6
        p = pred("person", 0.8, 14, 100, 100, 100)
        groups = scorer.partition([p])
        assert scorer.eye_contact_score(groups, FRAME_W) == pytest.approx(60 + 20 + 9)

    def test_small_person_head_pose(self, scorer):
        # relative area 3072 / 307200 = 0.01 -> size score 10
        p = pred("person", 0.5, 0, 0, 48, 64)
        groups = scorer.partition([p])
        assert scorer.head_pose_score(groups, FRAME_W, FRAME_H) == pytest.approx(50 + 15 + 10)


class TestDevicesAndObjects:
    """Penalties for devices, computers and distractions."""

    def test_device_penalty(self, scorer):
        # multiplier min(1.5, 0.8 * 1.5) = 1.2 -> 80 - 42
        metrics = scorer.score([pred("cell phone", 0.8, 0, 0, 40, 80)], FRAME_W, FRAME_H)
        assert metrics.focus_score == 38
        assert metrics.eye_contact_score == 20
        assert metrics.head_pose_score == 60
        assert metrics.overall_attention == 39

    def test_device_multiplier_capped(self, scorer):
        # multiplier min(1.5, 1.5) -> 80 - 52.5
        groups = scorer.partition([pred("cell phone", 1.0)])
        assert scorer.focus_score(groups) == pytest.approx(27.5)

    def test_device_lowers_single_person_scores(self, scorer):
        person = centered_person(0.9)
        phone = pred("cell phone", 0.5, 500, 300, 40, 80)
        metrics = scorer.score([person, phone], FRAME_W, FRAME_H)
        # focus 80 - 35 * 0.75 + 5 = 58.75
        assert metrics.focus_score == 59
        assert metrics.eye_contact_score == 78
        assert metrics.head_pose_score == 85

    def test_computer_and_distraction_penalties(self, scorer):
        preds = [pred("laptop", 0.8), pred("cup", 0.5)]
        groups = scorer.partition(preds)
        # 80 - 0.8 * 15 - 0.5 * 8
        assert scorer.focus_score(groups) == pytest.approx(64)

    def test_unlisted_class_has_no_effect(self, scorer):
        metrics = scorer.score([pred("giraffe", 0.99)], FRAME_W, FRAME_H)
        assert metrics.focus_score == 80

    def test_focus_clamped_at_zero(self, scorer):
        phones = [pred("cell phone", 1.0, i * 50, 0, 40, 80) for i in range(3)]
        metrics = scorer.score(phones, FRAME_W, FRAME_H)
        assert metrics.focus_score == 0


class TestPersonCount:
    """Eye contact and head pose for zero or several persons."""

    def test_empty_frame(self, scorer):
        metrics = scorer.score([], FRAME_W, FRAME_H)
        assert metrics.focus_score == 80
        assert metrics.eye_contact_score == 20
        assert metrics.head_pose_score == 60
        assert metrics.overall_attention == 53

    @pytest.mark.parametrize("count,expected", [(2, 75), (3, 50), (4, 30), (6, 30)])
    def test_multiple_people_eye_contact(self, scorer, count, expected):
        persons = [pred("person", 0.9, i * 100, 0, 80, 200) for i in range(count)]
        metrics = scorer.score(persons, FRAME_W, FRAME_H)
        assert metrics.eye_contact_score == expected
        assert metrics.head_pose_score == 60

    def test_no_bonus_with_two_people(self, scorer):
        persons = [pred("person", 0.9, 0, 0, 80, 200), pred("person", 0.9, 300, 0, 80, 200)]
        groups = scorer.partition(persons)
        assert scorer.focus_score(groups) == 80


class TestRange:
    """All metrics are integers in [0, 100]."""

    @pytest.mark.parametrize("preds", [
        [],
        [pred("person", 1.0, 0, 0, 640, 480)],
        [pred("cell phone", 1.0)] * 5 + [pred("laptop", 1.0)] * 5,
        [pred("person", 0.6, 600, 0, 40, 40), pred("tv", 0.9), pred("book", 0.4)],
    ])
    def test_bounds(self, scorer, preds):
        for value in scorer.score(preds, FRAME_W, FRAME_H).to_dict().values():
            assert isinstance(value, int)
            assert 0 <= value <= 100

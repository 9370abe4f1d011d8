"""
Pipeline stages, each a small class configured by its own config section.
"""

from .preprocess import FramePreprocessor
from .filter import ClassFilter
from .suppress import Suppressor, non_max_suppression
from .smooth import TemporalSmoother, HistoryEntry
from .score import AttentionScorer, RoleGroups

__all__ = [
    "FramePreprocessor",
    "ClassFilter",
    "Suppressor",
    "non_max_suppression",
    "TemporalSmoother",
    "HistoryEntry",
    "AttentionScorer",
    "RoleGroups",
]

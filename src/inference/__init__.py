"""
Inference backends producing class-labelled predictions.
"""

from .backend import Detector, DetectorFactory
from .ultralytics_backend import UltralyticsBackend, ultralytics_factory

__all__ = ["Detector", "DetectorFactory", "UltralyticsBackend", "ultralytics_factory"]

"""Detection postprocessing and detector implementations."""

from shelfsnap.detection.postprocessor import DetectionPostprocessor, PostprocessResult, non_max_suppression
from shelfsnap.detection.simulated_detector import SimulatedShelfDetector

__all__ = [
    "DetectionPostprocessor",
    "PostprocessResult",
    "SimulatedShelfDetector",
    "non_max_suppression",
]

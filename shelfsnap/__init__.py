"""ShelfSnap shelf compliance system

Planogram-vs-detection reconciliation, compliance scoring and planogram editing.
"""

__version__ = "0.1.0"

# Configuration
from shelfsnap.config import ConfigManager

# Data models
from shelfsnap.models import (
    Box,
    Discrepancy,
    Observation,
    Planogram,
    Product,
    RawDetection,
    ReconciliationResult,
    ShelfLevel,
)

# Core errors
from shelfsnap.core.errors import NotFoundError, ShelfSnapError, SlotOccupiedError, ValidationError

# Processing
from shelfsnap.detection import DetectionPostprocessor, SimulatedShelfDetector
from shelfsnap.editor import PlanogramEditor
from shelfsnap.reconciliation import PlanogramReconciler

__all__ = [
    "Box",
    "ConfigManager",
    "DetectionPostprocessor",
    "Discrepancy",
    "NotFoundError",
    "Observation",
    "Planogram",
    "PlanogramEditor",
    "PlanogramReconciler",
    "Product",
    "RawDetection",
    "ReconciliationResult",
    "ShelfLevel",
    "ShelfSnapError",
    "SimulatedShelfDetector",
    "SlotOccupiedError",
    "ValidationError",
]

"""Utility modules for the shelf compliance system."""

from shelfsnap.utils.export_utils import ReportExporter, discrepancies_to_dataframe
from shelfsnap.utils.logging_utils import setup_logging
from shelfsnap.utils.serialization import (
    export_planogram_json,
    load_detections_json,
    load_planogram_json,
    planogram_from_dict,
    planogram_to_dict,
)
from shelfsnap.utils.stats_utils import (
    ConfidenceStatistics,
    DetectionSummary,
    average_compliance,
    calculate_confidence_statistics,
    summarize_detections,
)

__all__ = [
    "ConfidenceStatistics",
    "DetectionSummary",
    "ReportExporter",
    "average_compliance",
    "calculate_confidence_statistics",
    "discrepancies_to_dataframe",
    "export_planogram_json",
    "load_detections_json",
    "load_planogram_json",
    "planogram_from_dict",
    "planogram_to_dict",
    "setup_logging",
    "summarize_detections",
]

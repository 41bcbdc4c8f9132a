"""Data models for the shelf compliance system."""

from shelfsnap.models.data_models import (
    Box,
    Discrepancy,
    Observation,
    Planogram,
    PlanogramMetadata,
    Point,
    Product,
    ProductRef,
    RawDetection,
    ReconciliationResult,
    ShelfLevel,
)

__all__ = [
    "Box",
    "Discrepancy",
    "Observation",
    "Planogram",
    "PlanogramMetadata",
    "Point",
    "Product",
    "ProductRef",
    "RawDetection",
    "ReconciliationResult",
    "ShelfLevel",
]

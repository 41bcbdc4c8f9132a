"""Adapters for external collaborators."""

from shelfsnap.adapters.converters import from_persistence_record, to_persistence_record
from shelfsnap.adapters.fakes import FixedDetector, InMemoryPlanogramRepository

__all__ = [
    "FixedDetector",
    "InMemoryPlanogramRepository",
    "from_persistence_record",
    "to_persistence_record",
]

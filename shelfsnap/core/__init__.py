"""Core ports and error definitions."""

from shelfsnap.core.errors import NotFoundError, ShelfSnapError, SlotOccupiedError, ValidationError
from shelfsnap.core.interfaces import DetectorPort, PlanogramRepositoryPort

__all__ = [
    "DetectorPort",
    "NotFoundError",
    "PlanogramRepositoryPort",
    "ShelfSnapError",
    "SlotOccupiedError",
    "ValidationError",
]

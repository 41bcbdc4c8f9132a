"""Geometry utilities."""

from shelfsnap.geometry.box_utils import (
    bounding_box_of,
    box_center,
    estimate_shelf_lines,
    iou,
    snap_to_grid,
    snap_to_slot,
)

__all__ = [
    "bounding_box_of",
    "box_center",
    "estimate_shelf_lines",
    "iou",
    "snap_to_grid",
    "snap_to_slot",
]

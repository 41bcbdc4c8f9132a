"""Planogram layout model."""

from shelfsnap.layout.planogram_layout import (
    add_product,
    initialize,
    move_product,
    remove_product,
    update_product,
)

__all__ = [
    "add_product",
    "initialize",
    "move_product",
    "remove_product",
    "update_product",
]

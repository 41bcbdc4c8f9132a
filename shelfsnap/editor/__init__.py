"""Planogram editing with undo/redo history."""

from shelfsnap.editor.history import PlanogramHistory
from shelfsnap.editor.planogram_editor import PlanogramEditor

__all__ = [
    "PlanogramEditor",
    "PlanogramHistory",
]

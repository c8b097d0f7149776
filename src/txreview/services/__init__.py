"""Review services: selection, undo, the review engine, import and export."""

from txreview.services.review_engine import ReviewEngine, ReviewView
from txreview.services.selection import SelectionTracker
from txreview.services.undo import UndoManager

__all__ = ["ReviewEngine", "ReviewView", "SelectionTracker", "UndoManager"]

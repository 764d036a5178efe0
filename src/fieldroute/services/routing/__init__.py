"""Route sequencing engine exports."""

from .ordering import apply_order, apply_overrides, default_order, merge_visible_order, reconcile, tracking_order
from .progress import ProgressTracker, current_stop_index, next_stop_index
from .reorder import ReorderPipeline, ReorderState
from .scheduler import SequentialScheduler, schedule
from .time_codec import add_minutes, to_12_hour, to_24_hour

__all__ = [
    "add_minutes",
    "to_12_hour",
    "to_24_hour",
    "schedule",
    "SequentialScheduler",
    "reconcile",
    "default_order",
    "tracking_order",
    "apply_order",
    "apply_overrides",
    "merge_visible_order",
    "ReorderPipeline",
    "ReorderState",
    "ProgressTracker",
    "current_stop_index",
    "next_stop_index",
]

"""Change notification layer."""

from .types import ChangeEvent, DeliveryReport, EventKind
from .registry import DocumentPattern, TriggerRegistry

__all__ = [
    "ChangeEvent",
    "DeliveryReport",
    "EventKind",
    "DocumentPattern",
    "TriggerRegistry",
]

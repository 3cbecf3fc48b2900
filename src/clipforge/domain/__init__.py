"""Domain layer."""

from clipforge.domain.enums import Stage, TaskKind, TaskStatus
from clipforge.domain.models import CreativeUnit, Task, TaskObservation, TimestampWindow

__all__ = [
    "CreativeUnit",
    "Stage",
    "Task",
    "TaskKind",
    "TaskObservation",
    "TaskStatus",
    "TimestampWindow",
]

"""Transcript-to-task parsing."""

from .models import (
    Assisted,
    Deterministic,
    Fallback,
    FallbackReason,
    ParseOutcome,
    Priority,
    StructuredTask,
    TaskStatus,
)
from .temporal import TemporalResolver, TemporalResolution
from .priority import PriorityClassifier
from .distiller import TitleDistiller, DistilledText
from .deterministic import DeterministicParser
from .reconcile import reconcile_tasks
from .assisted import AssistedParser

__all__ = [
    "Assisted",
    "AssistedParser",
    "Deterministic",
    "DeterministicParser",
    "DistilledText",
    "Fallback",
    "FallbackReason",
    "ParseOutcome",
    "Priority",
    "PriorityClassifier",
    "StructuredTask",
    "TaskStatus",
    "TemporalResolution",
    "TemporalResolver",
    "TitleDistiller",
    "reconcile_tasks",
]

"""Rule-based task parser. Never touches the network."""

import logging
from datetime import datetime
from typing import Optional

from .distiller import TitleDistiller
from .models import StructuredTask, TaskStatus
from .priority import PriorityClassifier
from .temporal import TemporalResolver

logger = logging.getLogger(__name__)


class DeterministicParser:
    """Compose the temporal resolver, priority classifier and title distiller."""

    def __init__(
        self,
        resolver: Optional[TemporalResolver] = None,
        classifier: Optional[PriorityClassifier] = None,
        distiller: Optional[TitleDistiller] = None,
    ):
        self.resolver = resolver or TemporalResolver()
        self.classifier = classifier or PriorityClassifier()
        self.distiller = distiller or TitleDistiller()

    def parse(
        self,
        text: str,
        timezone_offset: Optional[int] = None,
        reference: Optional[datetime] = None,
    ) -> StructuredTask:
        """Extract a structured task from ``text``.

        Args:
            text: Transcript to parse
            timezone_offset: Caller's offset in minutes east of UTC
            reference: Instant relative phrases are resolved against

        Returns:
            StructuredTask; the default task for empty input
        """
        if not text or not text.strip():
            return StructuredTask()

        resolution = self.resolver.resolve(text, reference=reference, timezone_offset=timezone_offset)
        priority = self.classifier.classify(text)
        distilled = self.distiller.distill(text, resolution.matched_span, priority)

        task = StructuredTask(
            title=distilled.title,
            description=distilled.description,
            due_date=resolution.instant,
            priority=priority,
            status=TaskStatus.TODO,
        )
        logger.debug(f"Deterministic parse: {task.to_payload()}")
        return task

"""Field-by-field merge of the assisted and deterministic candidates."""

from .models import StructuredTask


def reconcile_tasks(assisted: StructuredTask, deterministic: StructuredTask) -> StructuredTask:
    """Merge two candidate tasks for the same transcript.

    Title, priority and status come from ``assisted``. An empty assisted
    description is backfilled from ``deterministic``. The deterministic due
    date wins whenever the resolver found one, since it is already corrected
    for the caller's timezone; otherwise the model's date is kept.
    """
    return StructuredTask(
        title=assisted.title,
        description=assisted.description or deterministic.description,
        due_date=deterministic.due_date or assisted.due_date,
        priority=assisted.priority,
        status=assisted.status,
    )

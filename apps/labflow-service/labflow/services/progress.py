"""
Run positioning shared by the database service and the in-memory store.

A run walks assays in dependency order and, within each assay, steps by
their ``order_index``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

Position = Tuple[Any, Any]


class WorkflowStartError(ValueError):
    """Raised when a workflow cannot be started."""


def first_position(assay_order: Sequence[Any], steps_by_assay: Dict[Any, Sequence[Any]]) -> Position:
    """Return (assay_id, step_id) where a new run begins.

    The run starts on the first step of the first assay; a workflow without
    assays, or whose first assay has no steps, cannot be started.
    """
    if not assay_order:
        raise WorkflowStartError("No assays found for workflow")
    first_assay = assay_order[0]
    steps = steps_by_assay.get(first_assay) or []
    if not steps:
        raise WorkflowStartError("No steps found for first assay")
    return first_assay, steps[0]


def next_position(
    assay_order: Sequence[Any],
    steps_by_assay: Dict[Any, Sequence[Any]],
    current_assay_id: Any,
    current_step_id: Any,
) -> Optional[Position]:
    """Return the position after the current one, or None when the run is finished.

    Assays without steps are skipped. An unknown current position restarts
    from the beginning of the current assay (or the workflow).
    """
    if current_assay_id in assay_order:
        assay_index = assay_order.index(current_assay_id)
    else:
        assay_index = 0
        current_step_id = None
    steps = list(steps_by_assay.get(assay_order[assay_index]) or []) if assay_order else []
    if current_step_id in steps:
        step_index = steps.index(current_step_id) + 1
    else:
        step_index = 0 if current_step_id is None else len(steps)
    if step_index < len(steps):
        return assay_order[assay_index], steps[step_index]
    for assay_id in assay_order[assay_index + 1:]:
        following = steps_by_assay.get(assay_id) or []
        if following:
            return assay_id, following[0]
    return None

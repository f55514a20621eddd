import logging
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from timesheets.models.timecard import (
    DocumentLine,
    DocumentLinePatch,
    Timecard,
    TimecardLine,
    TimecardStatus,
    Transition,
)

logger = logging.getLogger(__name__)


class IllegalTransitionError(ValueError):
    pass


class EmptyTimecardError(IllegalTransitionError):
    pass


# Statuses a timecard may move to from each status. Anything absent is terminal.
ALLOWED_TRANSITIONS: Dict[TimecardStatus, FrozenSet[TimecardStatus]] = {
    TimecardStatus.DRAFT: frozenset({TimecardStatus.SUBMITTED, TimecardStatus.CANCELLED}),
    TimecardStatus.SUBMITTED: frozenset(
        {TimecardStatus.APPROVED, TimecardStatus.REJECTED, TimecardStatus.CANCELLED}
    ),
}


def can_transition(current: TimecardStatus, target: TimecardStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _require_draft(timecard: Timecard) -> None:
    if timecard.status != TimecardStatus.DRAFT:
        raise IllegalTransitionError(
            f"Lines can only be changed on a Draft timecard (status is {timecard.status.value})"
        )


def transition(
    timecard: Timecard,
    target: TimecardStatus,
    *,
    person: Optional[int] = None,
    reason: Optional[str] = None,
) -> Transition:
    current = timecard.status
    if not can_transition(current, target):
        raise IllegalTransitionError(
            f"Cannot move timecard from {current.value} to {target.value}"
        )

    if target == TimecardStatus.SUBMITTED and not timecard.lines:
        raise EmptyTimecardError("Cannot submit a timecard with no lines")

    recorded = timecard.record_transition(target, person=person, reason=reason)

    logger.info(
        "Timecard transitioned",
        extra={
            "timecard_id": str(timecard.id),
            "employee": timecard.employee,
            "from_status": current.value,
            "to_status": target.value,
            "person": person,
        },
    )
    return recorded


def submit(timecard: Timecard, *, person: Optional[int] = None) -> Transition:
    return transition(timecard, TimecardStatus.SUBMITTED, person=person)


def cancel(
    timecard: Timecard,
    *,
    person: Optional[int] = None,
    reason: Optional[str] = None,
) -> Transition:
    return transition(timecard, TimecardStatus.CANCELLED, person=person, reason=reason)


def reject(
    timecard: Timecard,
    *,
    person: Optional[int] = None,
    reason: Optional[str] = None,
) -> Transition:
    return transition(timecard, TimecardStatus.REJECTED, person=person, reason=reason)


def approve(timecard: Timecard, *, person: Optional[int] = None) -> Transition:
    return transition(timecard, TimecardStatus.APPROVED, person=person)


def record_line(timecard: Timecard, document_line: DocumentLine) -> TimecardLine:
    _require_draft(timecard)
    line = timecard.add_line(document_line)

    logger.info(
        "Timecard line recorded",
        extra={"timecard_id": str(timecard.id), "line_id": str(line.line_id)},
    )
    return line


def replace_line(
    timecard: Timecard,
    line_id: UUID,
    document_line: DocumentLine,
) -> Optional[TimecardLine]:
    _require_draft(timecard)
    return timecard.replace_line(line_id, document_line)


def patch_line(
    timecard: Timecard,
    line_id: UUID,
    patch: DocumentLinePatch,
) -> Optional[TimecardLine]:
    _require_draft(timecard)
    return timecard.patch_line(line_id, patch)


def ensure_deletable(timecard: Timecard) -> None:
    if not timecard.can_be_deleted():
        raise IllegalTransitionError(
            f"Cannot delete a timecard in status {timecard.status.value}"
        )

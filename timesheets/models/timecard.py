from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

TIMECARD_VERSION = "timecard-0.1"


class TimecardInvariantError(RuntimeError):
    """Aggregate state that normal construction can never produce."""


class TimecardStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class DayOfWeek(str, Enum):
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"


class Method(str, Enum):
    GET = "get"
    POST = "post"


class ContentType(str, Enum):
    CANCELLATION = "application/ext.cancellation+json"
    SUBMITTAL = "application/ext.submittal+json"
    TIMESHEET_LINE = "application/ext.timesheetline+json"
    REJECTION = "application/ext.rejection+json"
    APPROVAL = "application/ext.approval+json"
    TRANSITIONS = "application/ext.transitions+json"


class ActionRelationship(str, Enum):
    CANCEL = "cancel"
    SUBMIT = "submit"
    RECORD_LINE = "record-line"
    REJECT = "reject"
    APPROVE = "approve"


class DocumentRelationship(str, Enum):
    TRANSITIONS = "transitions"
    LINES = "lines"
    SUBMITTAL = "submittal"


@dataclass(frozen=True)
class ActionLink:
    method: Method
    type: ContentType
    relationship: ActionRelationship
    reference: str


@dataclass(frozen=True)
class DocumentLink:
    method: Method
    type: ContentType
    relationship: DocumentRelationship
    reference: str


@dataclass(frozen=True)
class Transition:
    transitioned_to: TimecardStatus
    occurred_at: datetime
    person: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class DocumentLine:
    week: int
    year: int
    day: DayOfWeek
    hours: float
    project: str
    employee: int


@dataclass
class DocumentLinePatch:
    employee: int
    week: Optional[int] = None
    year: Optional[int] = None
    day: Optional[DayOfWeek] = None
    hours: Optional[float] = None
    project: Optional[str] = None


@dataclass
class TimecardLine:
    line_id: UUID
    week: int
    year: int
    day: DayOfWeek
    hours: float
    project: str
    employee: int
    recorded_at: datetime


# (sub-resource, method, content type, relationship) per status, in emission order.
_ACTIONS: Dict[TimecardStatus, Tuple[Tuple[str, Method, ContentType, ActionRelationship], ...]] = {
    TimecardStatus.DRAFT: (
        ("cancellation", Method.POST, ContentType.CANCELLATION, ActionRelationship.CANCEL),
        ("submittal", Method.POST, ContentType.SUBMITTAL, ActionRelationship.SUBMIT),
        ("lines", Method.POST, ContentType.TIMESHEET_LINE, ActionRelationship.RECORD_LINE),
    ),
    TimecardStatus.SUBMITTED: (
        ("cancellation", Method.POST, ContentType.CANCELLATION, ActionRelationship.CANCEL),
        ("rejection", Method.POST, ContentType.REJECTION, ActionRelationship.REJECT),
        ("approval", Method.POST, ContentType.APPROVAL, ActionRelationship.APPROVE),
    ),
    TimecardStatus.APPROVED: (),
    TimecardStatus.REJECTED: (),
    TimecardStatus.CANCELLED: (),
}

DELETABLE_STATUSES = frozenset({TimecardStatus.CANCELLED, TimecardStatus.DRAFT})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def current_status(transitions: List[Transition]) -> TimecardStatus:
    """Status named by the latest transition; equal timestamps go to the later append."""
    if not transitions:
        raise TimecardInvariantError("Timecard has no transitions")

    latest = transitions[0]
    for transition in transitions[1:]:
        if transition.occurred_at >= latest.occurred_at:
            latest = transition
    return latest.transitioned_to


def _has_value(value) -> bool:
    return value is not None


def _is_non_empty(text: Optional[str]) -> bool:
    return bool(text)


@dataclass(eq=False)
class Timecard:
    """
    Timecard aggregate: an employee's lines plus the append-only transition log.

    Build new timecards with Timecard.open(); the plain constructor is for
    rehydrating stored aggregates.
    """

    employee: int
    opened_at: datetime
    id: UUID
    lines: List[TimecardLine] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)
    version: str = TIMECARD_VERSION
    internal_key: Optional[int] = None
    row_version: Optional[int] = None
    clock: Callable[[], datetime] = field(default=_utc_now, repr=False)
    new_id: Callable[[], UUID] = field(default=uuid4, repr=False)

    @classmethod
    def open(
        cls,
        employee: int,
        *,
        clock: Callable[[], datetime] = _utc_now,
        new_id: Callable[[], UUID] = uuid4,
    ) -> "Timecard":
        opened_at = clock()
        return cls(
            employee=int(employee),
            opened_at=opened_at,
            id=new_id(),
            lines=[],
            transitions=[Transition(TimecardStatus.DRAFT, opened_at)],
            clock=clock,
            new_id=new_id,
        )

    @property
    def status(self) -> TimecardStatus:
        return current_status(self.transitions)

    @property
    def self_reference(self) -> str:
        return f"/timesheets/{self.id}"

    def record_transition(
        self,
        status: TimecardStatus,
        *,
        person: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> Transition:
        # No legality check here; callers apply workflow policy first.
        transition = Transition(TimecardStatus(status), self.clock(), person=person, reason=reason)
        self.transitions.append(transition)
        return transition

    def actions(self) -> List[ActionLink]:
        return [
            ActionLink(
                method=method,
                type=content_type,
                relationship=relationship,
                reference=f"{self.self_reference}/{resource}",
            )
            for resource, method, content_type, relationship in _ACTIONS[self.status]
        ]

    def documents(self) -> List[DocumentLink]:
        links = [
            DocumentLink(
                method=Method.GET,
                type=ContentType.TRANSITIONS,
                relationship=DocumentRelationship.TRANSITIONS,
                reference=f"{self.self_reference}/transitions",
            )
        ]

        if self.lines:
            links.append(
                DocumentLink(
                    method=Method.GET,
                    type=ContentType.TIMESHEET_LINE,
                    relationship=DocumentRelationship.LINES,
                    reference=f"{self.self_reference}/lines",
                )
            )

        if self.status == TimecardStatus.SUBMITTED:
            links.append(
                DocumentLink(
                    method=Method.GET,
                    type=ContentType.TRANSITIONS,
                    relationship=DocumentRelationship.SUBMITTAL,
                    reference=f"{self.self_reference}/submittal",
                )
            )

        return links

    def can_be_deleted(self) -> bool:
        return self.status in DELETABLE_STATUSES

    def has_line(self, line_id: UUID) -> bool:
        return any(line.line_id == line_id for line in self.lines)

    def find_line(self, line_id: UUID) -> Optional[TimecardLine]:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        return None

    def add_line(self, document_line: DocumentLine) -> TimecardLine:
        line = TimecardLine(
            line_id=self.new_id(),
            week=document_line.week,
            year=document_line.year,
            day=DayOfWeek(document_line.day),
            hours=document_line.hours,
            project=document_line.project,
            employee=document_line.employee,
            recorded_at=self.clock(),
        )
        self.lines.append(line)
        return line

    def replace_line(self, line_id: UUID, document_line: DocumentLine) -> Optional[TimecardLine]:
        line = self.find_line(line_id)
        if line is None:
            return None

        line.week = document_line.week
        line.year = document_line.year
        line.day = DayOfWeek(document_line.day)
        line.hours = document_line.hours
        line.project = document_line.project
        return line

    def patch_line(self, line_id: UUID, patch: DocumentLinePatch) -> Optional[TimecardLine]:
        """
        Optional fields apply only when present; project applies only when
        non-empty. patch.employee is accepted but never written to the line.
        """
        line = self.find_line(line_id)
        if line is None:
            return None

        if _has_value(patch.week):
            line.week = patch.week
        if _has_value(patch.year):
            line.year = patch.year
        if _has_value(patch.day):
            line.day = DayOfWeek(patch.day)
        if _has_value(patch.hours):
            line.hours = patch.hours
        if _is_non_empty(patch.project):
            line.project = patch.project
        return line

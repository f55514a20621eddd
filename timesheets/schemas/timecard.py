from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from timesheets.models.timecard import (
    ActionLink,
    DayOfWeek,
    DocumentLine,
    DocumentLinePatch,
    DocumentLink,
    Timecard,
    TimecardLine,
    TimecardStatus,
    Transition,
)


class TimecardCreate(BaseModel):
    employee: int


class DocumentLineRequest(BaseModel):
    week: int = Field(ge=1, le=53)
    year: int = Field(ge=1, le=9999)
    day: DayOfWeek
    hours: float = Field(ge=0)
    project: str
    employee: int

    def to_document_line(self) -> DocumentLine:
        return DocumentLine(
            week=self.week,
            year=self.year,
            day=self.day,
            hours=self.hours,
            project=self.project,
            employee=self.employee,
        )


class DocumentLinePatchRequest(BaseModel):
    week: Optional[int] = Field(default=None, ge=1, le=53)
    year: Optional[int] = Field(default=None, ge=1, le=9999)
    day: Optional[DayOfWeek] = None
    hours: Optional[float] = Field(default=None, ge=0)
    project: Optional[str] = None
    employee: int

    def to_patch(self) -> DocumentLinePatch:
        return DocumentLinePatch(
            employee=self.employee,
            week=self.week,
            year=self.year,
            day=self.day,
            hours=self.hours,
            project=self.project,
        )


class SubmittalRequest(BaseModel):
    person: Optional[int] = None


class ApprovalRequest(BaseModel):
    person: Optional[int] = None


class CancellationRequest(BaseModel):
    person: Optional[int] = None
    reason: Optional[str] = None


class RejectionRequest(BaseModel):
    person: Optional[int] = None
    reason: Optional[str] = None


class LinkResponse(BaseModel):
    method: str
    type: str
    relationship: str
    reference: str


class TimecardLineResponse(BaseModel):
    line_id: UUID
    week: int
    year: int
    day: DayOfWeek
    hours: float
    project: str
    employee: int
    recorded_at: datetime
    self_reference: str = Field(serialization_alias="_self")


class TransitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transitioned_to: TimecardStatus
    occurred_at: datetime
    person: Optional[int]
    reason: Optional[str]


class TimecardResponse(BaseModel):
    id: UUID
    employee: int
    opened: datetime
    status: TimecardStatus
    version: str
    self_reference: str = Field(serialization_alias="_self")
    actions: List[LinkResponse]
    documentation: List[LinkResponse]


def _link(link: Union[ActionLink, DocumentLink]) -> LinkResponse:
    return LinkResponse(
        method=link.method.value,
        type=link.type.value,
        relationship=link.relationship.value,
        reference=link.reference,
    )


def to_timecard_response(timecard: Timecard) -> TimecardResponse:
    return TimecardResponse(
        id=timecard.id,
        employee=timecard.employee,
        opened=timecard.opened_at,
        status=timecard.status,
        version=timecard.version,
        self_reference=timecard.self_reference,
        actions=[_link(a) for a in timecard.actions()],
        documentation=[_link(d) for d in timecard.documents()],
    )


def to_line_response(timecard: Timecard, line: TimecardLine) -> TimecardLineResponse:
    return TimecardLineResponse(
        line_id=line.line_id,
        week=line.week,
        year=line.year,
        day=line.day,
        hours=line.hours,
        project=line.project,
        employee=line.employee,
        recorded_at=line.recorded_at,
        self_reference=f"{timecard.self_reference}/lines/{line.line_id}",
    )


def to_transition_response(transition: Transition) -> TransitionResponse:
    return TransitionResponse.model_validate(transition)

from __future__ import annotations

from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from timesheets.database import SessionLocal
from timesheets.models.timecard import Timecard, TimecardStatus
from timesheets.schemas.timecard import (
    ApprovalRequest,
    CancellationRequest,
    DocumentLinePatchRequest,
    DocumentLineRequest,
    RejectionRequest,
    SubmittalRequest,
    TimecardCreate,
    TimecardLineResponse,
    TimecardResponse,
    TransitionResponse,
    to_line_response,
    to_timecard_response,
    to_transition_response,
)
from timesheets.services import timecard_store, timecard_workflow

router = APIRouter(
    prefix="/timesheets",
    tags=["Timesheets"],
)


def _load(db: Session, timecard_id: UUID) -> Timecard:
    timecard = timecard_store.get_timecard(timecard_id, db=db)
    if timecard is None:
        raise HTTPException(status_code=404, detail="Timecard not found")
    return timecard


def _mutate(timecard_id: UUID, change: Callable[[Timecard], object]):
    """Load, apply change, save. Workflow refusals and stale saves (ValueError) map to 409."""
    db = SessionLocal()
    try:
        timecard = _load(db, timecard_id)
        result = change(timecard)
        timecard_store.save_timecard(timecard, db=db)
        db.commit()
        return timecard, result
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _read(timecard_id: UUID) -> Timecard:
    db = SessionLocal()
    try:
        return _load(db, timecard_id)
    finally:
        db.close()


@router.get("", response_model=list[TimecardResponse])
def list_timesheets(
    employee: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    rows = timecard_store.list_timecards(employee=employee, limit=limit, offset=offset)
    return [to_timecard_response(t) for t in rows]


@router.post("", response_model=TimecardResponse)
def create_timesheet(payload: TimecardCreate):
    timecard = Timecard.open(payload.employee)

    db = SessionLocal()
    try:
        timecard_store.add_timecard(timecard, db=db)
        db.commit()
        return to_timecard_response(timecard)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{timecard_id}", response_model=TimecardResponse)
def get_timesheet(timecard_id: UUID):
    return to_timecard_response(_read(timecard_id))


@router.delete("/{timecard_id}")
def delete_timesheet(timecard_id: UUID):
    db = SessionLocal()
    try:
        timecard = _load(db, timecard_id)
        timecard_workflow.ensure_deletable(timecard)
        timecard_store.delete_timecard(timecard_id, db=db)
        db.commit()
        return {"deleted": str(timecard_id)}
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{timecard_id}/lines", response_model=list[TimecardLineResponse])
def list_lines(timecard_id: UUID):
    timecard = _read(timecard_id)
    return [to_line_response(timecard, line) for line in timecard.lines]


@router.post("/{timecard_id}/lines", response_model=TimecardLineResponse)
def record_line(timecard_id: UUID, payload: DocumentLineRequest):
    timecard, line = _mutate(
        timecard_id,
        lambda t: timecard_workflow.record_line(t, payload.to_document_line()),
    )
    return to_line_response(timecard, line)


@router.get("/{timecard_id}/lines/{line_id}", response_model=TimecardLineResponse)
def get_line(timecard_id: UUID, line_id: UUID):
    timecard = _read(timecard_id)
    line = timecard.find_line(line_id)
    if line is None:
        raise HTTPException(status_code=404, detail="Line not found")
    return to_line_response(timecard, line)


@router.put("/{timecard_id}/lines/{line_id}", response_model=TimecardLineResponse)
def replace_line(timecard_id: UUID, line_id: UUID, payload: DocumentLineRequest):
    timecard, line = _mutate(
        timecard_id,
        lambda t: timecard_workflow.replace_line(t, line_id, payload.to_document_line()),
    )
    if line is None:
        raise HTTPException(status_code=404, detail="Line not found")
    return to_line_response(timecard, line)


@router.patch("/{timecard_id}/lines/{line_id}", response_model=TimecardLineResponse)
def patch_line(timecard_id: UUID, line_id: UUID, payload: DocumentLinePatchRequest):
    timecard, line = _mutate(
        timecard_id,
        lambda t: timecard_workflow.patch_line(t, line_id, payload.to_patch()),
    )
    if line is None:
        raise HTTPException(status_code=404, detail="Line not found")
    return to_line_response(timecard, line)


@router.get("/{timecard_id}/transitions", response_model=list[TransitionResponse])
def list_transitions(timecard_id: UUID):
    timecard = _read(timecard_id)
    return [to_transition_response(t) for t in timecard.transitions]


@router.post("/{timecard_id}/submittal", response_model=TransitionResponse)
def submit_timesheet(timecard_id: UUID, payload: SubmittalRequest):
    _, transition = _mutate(
        timecard_id,
        lambda t: timecard_workflow.submit(t, person=payload.person),
    )
    return to_transition_response(transition)


@router.get("/{timecard_id}/submittal", response_model=TransitionResponse)
def get_submittal(timecard_id: UUID):
    timecard = _read(timecard_id)
    if timecard.status != TimecardStatus.SUBMITTED:
        raise HTTPException(status_code=404, detail="Timecard is not submitted")

    submittals = [
        t for t in timecard.transitions if t.transitioned_to == TimecardStatus.SUBMITTED
    ]
    return to_transition_response(submittals[-1])


@router.post("/{timecard_id}/cancellation", response_model=TransitionResponse)
def cancel_timesheet(timecard_id: UUID, payload: CancellationRequest):
    _, transition = _mutate(
        timecard_id,
        lambda t: timecard_workflow.cancel(t, person=payload.person, reason=payload.reason),
    )
    return to_transition_response(transition)


@router.post("/{timecard_id}/rejection", response_model=TransitionResponse)
def reject_timesheet(timecard_id: UUID, payload: RejectionRequest):
    _, transition = _mutate(
        timecard_id,
        lambda t: timecard_workflow.reject(t, person=payload.person, reason=payload.reason),
    )
    return to_transition_response(transition)


@router.post("/{timecard_id}/approval", response_model=TransitionResponse)
def approve_timesheet(timecard_id: UUID, payload: ApprovalRequest):
    _, transition = _mutate(
        timecard_id,
        lambda t: timecard_workflow.approve(t, person=payload.person),
    )
    return to_transition_response(transition)

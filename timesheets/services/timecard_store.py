from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from timesheets.database import SessionLocal
from timesheets.models.timecard import (
    DayOfWeek,
    Timecard,
    TimecardLine,
    TimecardStatus,
    Transition,
)
from timesheets.models.timecard_record import TimecardRecord


class StaleTimecardError(ValueError):
    """The stored timecard changed after this copy was loaded."""


def _as_utc(dt: datetime) -> datetime:
    """Naive datetimes (SQLite drops tzinfo) are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _line_to_document(line: TimecardLine) -> dict:
    return {
        "line_id": str(line.line_id),
        "week": line.week,
        "year": line.year,
        "day": line.day.value,
        "hours": line.hours,
        "project": line.project,
        "employee": line.employee,
        "recorded_at": line.recorded_at.isoformat(),
    }


def _line_from_document(doc: dict) -> TimecardLine:
    return TimecardLine(
        line_id=UUID(doc["line_id"]),
        week=int(doc["week"]),
        year=int(doc["year"]),
        day=DayOfWeek(doc["day"]),
        hours=float(doc["hours"]),
        project=doc["project"],
        employee=int(doc["employee"]),
        recorded_at=_as_utc(datetime.fromisoformat(doc["recorded_at"])),
    )


def _transition_to_document(transition: Transition) -> dict:
    return {
        "transitioned_to": transition.transitioned_to.value,
        "occurred_at": transition.occurred_at.isoformat(),
        "person": transition.person,
        "reason": transition.reason,
    }


def _transition_from_document(doc: dict) -> Transition:
    return Transition(
        transitioned_to=TimecardStatus(doc["transitioned_to"]),
        occurred_at=_as_utc(datetime.fromisoformat(doc["occurred_at"])),
        person=doc.get("person"),
        reason=doc.get("reason"),
    )


def _to_timecard(row: TimecardRecord) -> Timecard:
    return Timecard(
        employee=row.employee,
        opened_at=_as_utc(row.opened_at),
        id=UUID(row.timecard_id),
        lines=[_line_from_document(doc) for doc in (row.lines or [])],
        transitions=[_transition_from_document(doc) for doc in (row.transitions or [])],
        version=row.version,
        internal_key=row.internal_key,
        row_version=row.row_version,
    )


def _write_row(row: TimecardRecord, timecard: Timecard) -> None:
    row.employee = timecard.employee
    row.opened_at = timecard.opened_at
    row.version = timecard.version
    row.lines = [_line_to_document(line) for line in timecard.lines]
    row.transitions = [_transition_to_document(t) for t in timecard.transitions]


def _get_row(db: Session, timecard_id: UUID) -> Optional[TimecardRecord]:
    return (
        db.query(TimecardRecord)
        .filter(TimecardRecord.timecard_id == str(timecard_id))
        .first()
    )


def add_timecard(timecard: Timecard, *, db: Optional[Session] = None) -> Timecard:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        row = TimecardRecord(timecard_id=str(timecard.id))
        _write_row(row, timecard)

        db.add(row)
        db.flush()

        timecard.internal_key = row.internal_key
        timecard.row_version = row.row_version

        if owns_db:
            db.commit()

        return timecard
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def get_timecard(timecard_id: UUID, *, db: Optional[Session] = None) -> Optional[Timecard]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        row = _get_row(db, timecard_id)
        if row is None:
            return None
        return _to_timecard(row)
    finally:
        if owns_db:
            db.close()


def save_timecard(timecard: Timecard, *, db: Optional[Session] = None) -> Timecard:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        row = _get_row(db, timecard.id)
        if row is None:
            raise ValueError("Timecard not found")

        if row.row_version != timecard.row_version:
            raise StaleTimecardError("Timecard was modified by another request")

        _write_row(row, timecard)
        try:
            db.flush()
        except StaleDataError as exc:
            raise StaleTimecardError("Timecard was modified by another request") from exc

        timecard.row_version = row.row_version

        if owns_db:
            db.commit()

        return timecard
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def delete_timecard(timecard_id: UUID, *, db: Optional[Session] = None) -> bool:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        row = _get_row(db, timecard_id)
        if row is None:
            return False

        db.delete(row)
        try:
            db.flush()
        except StaleDataError as exc:
            raise StaleTimecardError("Timecard was modified by another request") from exc

        if owns_db:
            db.commit()

        return True
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def list_timecards(
    *,
    employee: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
    db: Optional[Session] = None,
) -> List[Timecard]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(TimecardRecord)
        if employee is not None:
            q = q.filter(TimecardRecord.employee == int(employee))

        rows = (
            q.order_by(TimecardRecord.internal_key.asc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
        return [_to_timecard(r) for r in rows]
    finally:
        if owns_db:
            db.close()

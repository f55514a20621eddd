from datetime import timezone

import pytest

from timesheets.database import SessionLocal
from timesheets.models.timecard import DayOfWeek, DocumentLine, Timecard, TimecardStatus
from timesheets.models.timecard_record import TimecardRecord
from timesheets.services import timecard_store
from timesheets.services import timecard_workflow as workflow


def _line(**overrides) -> DocumentLine:
    data = dict(week=3, year=2024, day=DayOfWeek.MONDAY, hours=8.0, project="Alpha", employee=42)
    data.update(overrides)
    return DocumentLine(**data)


def test_add_assigns_internal_key_and_round_trips(clock, ids):
    timecard = Timecard.open(42, clock=clock, new_id=ids)
    timecard.add_line(_line())
    timecard.add_line(_line(day=DayOfWeek.TUESDAY, hours=7.5, project="Beta"))
    timecard.record_transition(TimecardStatus.SUBMITTED, person=42)

    timecard_store.add_timecard(timecard)
    assert timecard.internal_key is not None

    loaded = timecard_store.get_timecard(timecard.id)

    assert loaded is not None
    assert loaded.internal_key == timecard.internal_key
    assert loaded.id == timecard.id
    assert loaded.employee == 42
    assert loaded.opened_at.astimezone(timezone.utc) == timecard.opened_at
    assert loaded.version == "timecard-0.1"
    assert loaded.lines == timecard.lines
    assert loaded.transitions == timecard.transitions
    assert loaded.status == TimecardStatus.SUBMITTED


def test_get_unknown_timecard_returns_none(ids):
    assert timecard_store.get_timecard(ids()) is None


def test_save_persists_mutations(clock, ids):
    timecard = Timecard.open(42, clock=clock, new_id=ids)
    timecard_store.add_timecard(timecard)

    loaded = timecard_store.get_timecard(timecard.id)
    line = loaded.add_line(_line())
    timecard_store.save_timecard(loaded)

    reloaded = timecard_store.get_timecard(timecard.id)
    assert reloaded.has_line(line.line_id)
    assert len(reloaded.transitions) == 1


def test_add_with_caller_session_does_not_commit(clock, ids):
    timecard = Timecard.open(42, clock=clock, new_id=ids)

    db = SessionLocal()
    try:
        timecard_store.add_timecard(timecard, db=db)
        db.rollback()
    finally:
        db.close()

    assert timecard_store.get_timecard(timecard.id) is None


def test_delete_removes_row(clock, ids):
    timecard = Timecard.open(42, clock=clock, new_id=ids)
    timecard_store.add_timecard(timecard)

    assert timecard_store.delete_timecard(timecard.id) is True
    assert timecard_store.delete_timecard(timecard.id) is False

    db = SessionLocal()
    try:
        assert db.query(TimecardRecord).count() == 0
    finally:
        db.close()


def test_list_filters_by_employee_in_creation_order(clock, ids):
    first = timecard_store.add_timecard(Timecard.open(1, clock=clock, new_id=ids))
    timecard_store.add_timecard(Timecard.open(2, clock=clock, new_id=ids))
    third = timecard_store.add_timecard(Timecard.open(1, clock=clock, new_id=ids))

    rows = timecard_store.list_timecards(employee=1)
    assert [t.id for t in rows] == [first.id, third.id]

    assert len(timecard_store.list_timecards(limit=2)) == 2
    assert len(timecard_store.list_timecards(offset=2)) == 1


def test_save_bumps_row_version(clock, ids):
    timecard = timecard_store.add_timecard(Timecard.open(42, clock=clock, new_id=ids))
    assert timecard.row_version == 1

    timecard.add_line(_line())
    timecard_store.save_timecard(timecard)

    assert timecard.row_version == 2
    assert timecard_store.get_timecard(timecard.id).row_version == 2


def test_overlapping_sessions_cannot_overwrite_each_others_lines(clock, ids):
    timecard = timecard_store.add_timecard(Timecard.open(42, clock=clock, new_id=ids))

    db_a = SessionLocal()
    db_b = SessionLocal()
    try:
        copy_a = timecard_store.get_timecard(timecard.id, db=db_a)
        copy_b = timecard_store.get_timecard(timecard.id, db=db_b)

        copy_a.add_line(_line(project="A"))
        timecard_store.save_timecard(copy_a, db=db_a)
        db_a.commit()

        copy_b.add_line(_line(project="B"))
        with pytest.raises(timecard_store.StaleTimecardError):
            timecard_store.save_timecard(copy_b, db=db_b)
        db_b.rollback()
    finally:
        db_a.close()
        db_b.close()

    reloaded = timecard_store.get_timecard(timecard.id)
    assert [line.project for line in reloaded.lines] == ["A"]


def test_stale_copy_cannot_drop_a_committed_transition(clock, ids):
    timecard = Timecard.open(42, clock=clock, new_id=ids)
    timecard.add_line(_line())
    timecard.record_transition(TimecardStatus.SUBMITTED)
    timecard_store.add_timecard(timecard)

    approver = timecard_store.get_timecard(timecard.id)
    canceller = timecard_store.get_timecard(timecard.id)

    workflow.approve(approver, person=1)
    timecard_store.save_timecard(approver)

    workflow.cancel(canceller, person=2)
    with pytest.raises(timecard_store.StaleTimecardError):
        timecard_store.save_timecard(canceller)

    reloaded = timecard_store.get_timecard(timecard.id)
    assert [t.transitioned_to for t in reloaded.transitions] == [
        TimecardStatus.DRAFT,
        TimecardStatus.SUBMITTED,
        TimecardStatus.APPROVED,
    ]
    assert reloaded.status == TimecardStatus.APPROVED


def test_delete_of_stale_row_is_refused(clock, ids):
    timecard = timecard_store.add_timecard(Timecard.open(42, clock=clock, new_id=ids))

    db = SessionLocal()
    try:
        timecard_store.get_timecard(timecard.id, db=db)

        fresh = timecard_store.get_timecard(timecard.id)
        fresh.add_line(_line())
        timecard_store.save_timecard(fresh)

        with pytest.raises(timecard_store.StaleTimecardError):
            timecard_store.delete_timecard(timecard.id, db=db)
        db.rollback()
    finally:
        db.close()

    assert timecard_store.get_timecard(timecard.id) is not None

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.ext.mutable import MutableList

from timesheets.database import Base


class TimecardRecord(Base):
    __tablename__ = "timecards"

    internal_key = Column(Integer, primary_key=True, autoincrement=True)
    timecard_id = Column(String(36), nullable=False, unique=True, index=True)

    employee = Column(Integer, nullable=False, index=True)
    opened_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(String, nullable=False)

    lines = Column(MutableList.as_mutable(JSON), default=list, nullable=False)
    transitions = Column(MutableList.as_mutable(JSON), default=list, nullable=False)

    # Bumped on every UPDATE; a save against an older value raises StaleDataError.
    row_version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

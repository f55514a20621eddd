from timesheets.models.timecard import Timecard
from timesheets.models.timecard_record import TimecardRecord

__all__ = [
    "Timecard",
    "TimecardRecord",
]

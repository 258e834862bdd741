from labsync.models.activity_log import ActivityLog  # noqa: F401
from labsync.models.conflict import ConflictType, TimetableConflict  # noqa: F401
from labsync.models.period import Period  # noqa: F401
from labsync.models.schedule import ScheduleStatus, TimetableSchedule  # noqa: F401
from labsync.models.timetable_config import TimetableConfig  # noqa: F401
from labsync.models.timetable_version import TimetableVersion  # noqa: F401
from labsync.models.user import User, UserRole  # noqa: F401

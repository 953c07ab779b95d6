from app.models.section import Section  # noqa: F401
from app.models.section_subject import SectionSubject  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
from app.models.timetable import SCHOOL_WEEK, DayOfWeek, TimeTableEntry  # noqa: F401

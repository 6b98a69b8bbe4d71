from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.classroom import Classroom, ClassroomType  # noqa: F401
from app.models.enrollment import Enrollment, EnrollmentStatus  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.student import Student  # noqa: F401
from app.models.subject import Subject, SubjectType  # noqa: F401
from app.models.time_slot import TimeSlot  # noqa: F401
from app.models.timetable import TimetableEntry  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401

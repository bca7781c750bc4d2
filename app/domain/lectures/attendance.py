"""
Lecture attendance state machine.

    pending ──► present | absent | partially | excused          (held, terminal)
    pending ──► postponed_by_trainer | postponed_by_student | postponed_holiday
    postponed_* ──► pending                                     (cancellation only)
"""

from enum import Enum


class Attendance(str, Enum):
    PENDING = "pending"
    PRESENT = "present"
    ABSENT = "absent"
    PARTIALLY = "partially"
    EXCUSED = "excused"
    POSTPONED_BY_TRAINER = "postponed_by_trainer"
    POSTPONED_BY_STUDENT = "postponed_by_student"
    POSTPONED_HOLIDAY = "postponed_holiday"


class PostponedBy(str, Enum):
    TRAINER = "trainer"
    STUDENT = "student"
    CUSTOMER_SERVICE = "customer_service"
    ADMIN = "admin"
    HOLIDAY = "holiday"


HELD_STATES = frozenset(
    {Attendance.PRESENT, Attendance.ABSENT, Attendance.PARTIALLY, Attendance.EXCUSED}
)

POSTPONED_STATES = frozenset(
    {
        Attendance.POSTPONED_BY_TRAINER,
        Attendance.POSTPONED_BY_STUDENT,
        Attendance.POSTPONED_HOLIDAY,
    }
)

# Staff-initiated postponements are booked against the trainer side
POSTPONED_ATTENDANCE = {
    PostponedBy.TRAINER: Attendance.POSTPONED_BY_TRAINER,
    PostponedBy.STUDENT: Attendance.POSTPONED_BY_STUDENT,
    PostponedBy.CUSTOMER_SERVICE: Attendance.POSTPONED_BY_TRAINER,
    PostponedBy.ADMIN: Attendance.POSTPONED_BY_TRAINER,
    PostponedBy.HOLIDAY: Attendance.POSTPONED_HOLIDAY,
}

# Plain string values for SQL IN (...) filters
HELD_VALUES = tuple(sorted(state.value for state in HELD_STATES))
POSTPONED_VALUES = tuple(sorted(state.value for state in POSTPONED_STATES))


def attendance_of(lecture) -> Attendance:
    return Attendance(lecture.attendance)


def is_pending(lecture) -> bool:
    return lecture.attendance == Attendance.PENDING.value


def is_held(lecture) -> bool:
    return lecture.attendance in HELD_VALUES


def is_postponed(lecture) -> bool:
    return lecture.attendance in POSTPONED_VALUES


def can_be_postponed(lecture) -> bool:
    """Only a lecture that has not happened and is not already postponed"""
    return is_pending(lecture)


def postponed_state_for(postponed_by: PostponedBy) -> Attendance:
    return POSTPONED_ATTENDANCE[PostponedBy(postponed_by)]


def can_transition(current: Attendance, target: Attendance) -> bool:
    """Transitions reachable through ordinary updates (not cancellation)"""
    current = Attendance(current)
    target = Attendance(target)
    if current is not Attendance.PENDING:
        return False
    return target in HELD_STATES or target in POSTPONED_STATES

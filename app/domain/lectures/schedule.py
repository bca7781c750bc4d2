"""
Schedule generation: turns a course cadence into its initial lectures.
"""

import logging
from datetime import date, timedelta
from typing import List

from sqlalchemy.orm import Session

from ...models import Course, Lecture
from ...shared.validators import WEEKDAY_CODES, validate_weekdays
from .attendance import Attendance
from .errors import InvalidSchedule, ScheduleAlreadyGenerated
from .repository import LectureRepository

logger = logging.getLogger(__name__)

# date.weekday(): Monday == 0
WEEKDAY_INDEX = {code: index for index, code in enumerate(WEEKDAY_CODES)}


def schedule_dates(start_date: date, lecture_days: list[str], count: int) -> List[date]:
    """The first ``count`` dates on or after start_date falling on a lecture day"""
    weekdays = {WEEKDAY_INDEX[day] for day in lecture_days}
    if not weekdays:
        raise InvalidSchedule("Course has no lecture days.")

    dates: list[date] = []
    current = start_date
    while len(dates) < count:
        if current.weekday() in weekdays:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def generate_lecture_schedule(db: Session, course: Course) -> List[Lecture]:
    """
    Create the pending lectures 1..lectures_count of a new course.

    Stages the rows and flushes; the caller commits.
    """
    if LectureRepository.count_lectures(db, course.id):
        raise ScheduleAlreadyGenerated()

    try:
        lecture_days = validate_weekdays(course.lecture_days)
    except ValueError as e:
        raise InvalidSchedule(str(e)) from e

    if not course.start_date or not lecture_days:
        raise InvalidSchedule()

    dates = schedule_dates(course.start_date, lecture_days, course.lectures_count or 0)

    lectures = [
        LectureRepository.add_lecture(
            db,
            course_id=course.id,
            lecture_number=number,
            date=lecture_date,
            time=course.lecture_time,
            attendance=Attendance.PENDING.value,
            is_makeup=False,
        )
        for number, lecture_date in enumerate(dates, start=1)
    ]

    logger.info(f"✅ Generated {len(lectures)} lectures for course {course.id}")
    return lectures

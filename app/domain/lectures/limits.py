"""
Postponement limits and derived lecture counters.

The postponement count of a course is never stored: it is the number of the
course's lectures currently in a postponed state, so cancelling a
postponement frees its slot automatically.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from ...models import Course
from .repository import LectureRepository


@dataclass
class LimitCheck:
    allowed: bool
    current: int
    max: int
    message: str


def postponement_count(db: Session, course: Course) -> int:
    return LectureRepository.count_postponed(db, course.id)


def check_limit(db: Session, course: Course, max_postponements: int) -> LimitCheck:
    """Check whether the course may take another postponement"""
    current = postponement_count(db, course)

    if current >= max_postponements:
        return LimitCheck(
            allowed=False,
            current=current,
            max=max_postponements,
            message=(
                f"Postponement limit reached ({max_postponements}). "
                "No more lectures of this course can be postponed."
            ),
        )

    return LimitCheck(
        allowed=True,
        current=current,
        max=max_postponements,
        message=f"Lecture can be postponed. Current postponements: {current}/{max_postponements}",
    )


def postponement_stats(db: Session, course: Course, max_postponements: int) -> dict:
    total = postponement_count(db, course)
    remaining = max(0, max_postponements - total)

    return {
        "total_postponements": total,
        "makeup_lectures_created": LectureRepository.count_makeups(db, course.id),
        "max_allowed": max_postponements,
        "remaining": remaining,
        "can_postpone": remaining > 0,
    }


def held_lecture_count(db: Session, trainer_id: int, start_date: date, end_date: date) -> int:
    """Held lectures of a trainer in a date range (what payroll consumes)"""
    return LectureRepository.count_held_for_trainer(db, trainer_id, start_date, end_date)

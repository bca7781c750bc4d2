"""
Trainer conflict detection.

A trainer conflicts with a requested slot when any active lecture of any of
the trainer's courses sits on the same date (and the same time, when a time
is requested). Postponed lectures no longer occupy their slot.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Course
from .repository import LectureRepository

logger = logging.getLogger(__name__)


@dataclass
class Conflict:
    lecture_id: int
    course_id: int
    course_title: str
    date: date
    time: Optional[str]
    type: str = "trainer"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class ConflictCheck:
    has_conflict: bool
    message: str
    conflicts: list[Conflict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "has_conflict": self.has_conflict,
            "message": self.message,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class ConflictDetector:
    def __init__(self, db: Session):
        self.db = db
        self.repo = LectureRepository()

    def check_time_conflicts(
        self,
        course: Course,
        on_date: date,
        time: Optional[str] = None,
        exclude_lecture_id: Optional[int] = None,
    ) -> ConflictCheck:
        """Find the trainer's active lectures colliding with the requested slot"""
        trainer_id = course.trainer_id
        if trainer_id is None:
            return ConflictCheck(has_conflict=False, message="Course has no trainer assigned.")

        logger.debug(
            f"Checking conflicts: trainer={trainer_id} date={on_date} time={time} "
            f"exclude={exclude_lecture_id}"
        )

        rows = self.repo.find_trainer_lectures_at(
            self.db, trainer_id, on_date, time, exclude_lecture_id
        )
        conflicts = [
            Conflict(
                lecture_id=lecture.id,
                course_id=other_course.id,
                course_title=other_course.title or "N/A",
                date=lecture.date,
                time=lecture.time or other_course.lecture_time,
            )
            for lecture, other_course in rows
        ]

        if conflicts:
            logger.info(
                f"⚠️ Trainer {trainer_id} has {len(conflicts)} conflict(s) on {on_date} {time or ''}: "
                f"{[c.lecture_id for c in conflicts]}"
            )
            return ConflictCheck(
                has_conflict=True,
                message="Time conflict: the trainer already has another lecture at this time.",
                conflicts=conflicts,
            )

        return ConflictCheck(has_conflict=False, message="No time conflicts.")

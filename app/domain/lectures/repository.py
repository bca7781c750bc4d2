"""Lecture repository - Database operations for lectures and their courses"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Course, Lecture, Trainer
from .attendance import HELD_VALUES, POSTPONED_VALUES


class LectureRepository:
    """Repository for lecture database operations"""

    @staticmethod
    def get_lecture(db: Session, lecture_id: int) -> Optional[Lecture]:
        """Get a lecture with its course loaded"""
        return (
            db.query(Lecture)
            .options(joinedload(Lecture.course))
            .filter(Lecture.id == lecture_id)
            .first()
        )

    @staticmethod
    def lock_lecture(db: Session, lecture_id: int) -> Optional[Lecture]:
        """Re-read a lecture under a row lock, discarding any stale identity-map state"""
        return (
            db.query(Lecture)
            .filter(Lecture.id == lecture_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_course(db: Session, course_id: int) -> Optional[Course]:
        return db.query(Course).filter(Course.id == course_id).first()

    @staticmethod
    def lock_course(db: Session, course_id: int) -> Optional[Course]:
        """
        Lock the course (and its trainer first, when assigned) for the rest of
        the transaction. Lock order is always trainer -> course -> lecture.
        """
        trainer_id = (
            db.query(Course.trainer_id).filter(Course.id == course_id).scalar()
        )
        if trainer_id is not None:
            db.query(Trainer).filter(Trainer.id == trainer_id).with_for_update().first()

        return (
            db.query(Course)
            .filter(Course.id == course_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def max_lecture_number(db: Session, course_id: int) -> int:
        return (
            db.query(func.max(Lecture.lecture_number))
            .filter(Lecture.course_id == course_id)
            .scalar()
            or 0
        )

    @staticmethod
    def count_lectures(db: Session, course_id: int) -> int:
        return db.query(func.count(Lecture.id)).filter(Lecture.course_id == course_id).scalar()

    @staticmethod
    def find_makeup_for(db: Session, original_id: int) -> Optional[Lecture]:
        """Derived reverse lookup: the makeup that replaces an original lecture"""
        return db.query(Lecture).filter(Lecture.makeup_for == original_id).first()

    @staticmethod
    def count_postponed(db: Session, course_id: int) -> int:
        return (
            db.query(func.count(Lecture.id))
            .filter(
                Lecture.course_id == course_id,
                Lecture.attendance.in_(POSTPONED_VALUES),
            )
            .scalar()
        )

    @staticmethod
    def count_makeups(db: Session, course_id: int) -> int:
        return (
            db.query(func.count(Lecture.id))
            .filter(Lecture.course_id == course_id, Lecture.is_makeup.is_(True))
            .scalar()
        )

    @staticmethod
    def count_held_for_trainer(
        db: Session, trainer_id: int, start_date: date, end_date: date
    ) -> int:
        """Held lectures of a trainer within [start_date, end_date]"""
        return (
            db.query(func.count(Lecture.id))
            .join(Course, Lecture.course_id == Course.id)
            .filter(
                Course.trainer_id == trainer_id,
                Lecture.attendance.in_(HELD_VALUES),
                Lecture.date >= start_date,
                Lecture.date <= end_date,
            )
            .scalar()
        )

    @staticmethod
    def find_trainer_lectures_at(
        db: Session,
        trainer_id: int,
        on_date: date,
        time: Optional[str] = None,
        exclude_lecture_id: Optional[int] = None,
    ) -> list[tuple[Lecture, Course]]:
        """
        Active (not postponed) lectures of every course the trainer teaches on a
        date, optionally at a time. A lecture without its own time is matched
        on its course default.
        """
        query = (
            db.query(Lecture, Course)
            .join(Course, Lecture.course_id == Course.id)
            .filter(
                Course.trainer_id == trainer_id,
                Lecture.date == on_date,
                Lecture.attendance.notin_(POSTPONED_VALUES),
            )
        )

        if time:
            query = query.filter(func.coalesce(Lecture.time, Course.lecture_time) == time)

        if exclude_lecture_id is not None:
            query = query.filter(Lecture.id != exclude_lecture_id)

        return query.order_by(Lecture.id).all()

    @staticmethod
    def add_lecture(db: Session, **lecture_data) -> Lecture:
        """Stage a new lecture; the caller owns the transaction"""
        lecture = Lecture(**lecture_data)
        db.add(lecture)
        db.flush()
        return lecture

    @staticmethod
    def delete_lecture(db: Session, lecture: Lecture) -> None:
        db.delete(lecture)
        db.flush()

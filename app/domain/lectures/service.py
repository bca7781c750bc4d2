"""
Lecture service - Postponement, cancellation and attendance workflows.

A postponed lecture is never deleted or moved. Its attendance switches to a
postponed value and a new makeup lecture, appended at the end of the course
schedule, carries the new slot. Cancelling a postponement is the exact
inverse: the makeup is removed, the course length shrinks back and the
original returns to pending.

Every check-and-mutate sequence runs in one transaction that starts by
locking the trainer and course rows, so two requests for the same course (or
for the same trainer's free slot) cannot interleave between the conflict
check and the commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import SchedulingSettings, get_scheduling_settings
from ...models import Course, Lecture
from . import audit
from .actors import (
    Actor,
    can_cancel_postponement,
    can_generate_schedule,
    can_override_conflicts,
    can_postpone,
    can_record_attendance,
    can_view_schedule,
)
from .attendance import (
    HELD_STATES,
    Attendance,
    PostponedBy,
    attendance_of,
    can_be_postponed,
    can_transition,
    is_held,
    is_postponed,
    postponed_state_for,
)
from .conflicts import ConflictCheck, ConflictDetector
from .errors import (
    CannotPostpone,
    InvalidRequest,
    InvalidTransition,
    LectureOperationError,
    MakeupAlreadyCompleted,
    MakeupPostponed,
    MaxPostponementsReached,
    NotFound,
    NotPostponed,
    PermissionDenied,
    TimeConflict,
    TransactionFailure,
)
from .limits import LimitCheck, check_limit, postponement_stats
from .repository import LectureRepository
from .schedule import generate_lecture_schedule
from .schemas import PostponementStats

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Structured outcome of a scheduling operation; failures are values, not raises"""

    success: bool
    code: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, data: Optional[dict[str, Any]] = None) -> "OperationResult":
        return cls(success=True, code="success", message=message, data=data or {})

    @classmethod
    def from_error(cls, error: LectureOperationError) -> "OperationResult":
        return cls(success=False, code=error.code, message=error.message, data=dict(error.data))


class PostponementService:
    """Service layer for lecture scheduling business logic"""

    def __init__(
        self,
        db: Session,
        settings: Optional[SchedulingSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.settings = settings or get_scheduling_settings()
        self.clock = clock or datetime.utcnow
        self.repo = LectureRepository()
        self.detector = ConflictDetector(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_lecture(self, lecture_id: int) -> Lecture:
        lecture = self.repo.get_lecture(self.db, lecture_id)
        if not lecture:
            raise HTTPException(status_code=404, detail="Lecture not found")
        return lecture

    def get_lecture_detail(self, lecture_id: int) -> dict:
        """A lecture with both ends of its makeup link resolved"""
        lecture = self.get_lecture(lecture_id)
        return {
            "lecture": lecture,
            "original_lecture": lecture.original_lecture,
            "makeup_lecture": self.repo.find_makeup_for(self.db, lecture.id),
        }

    def check_postponement_limit(self, course: Course) -> LimitCheck:
        return check_limit(self.db, course, self.settings.max_postponements)

    def check_time_conflicts(
        self,
        course: Course,
        on_date: date,
        time: Optional[str] = None,
        exclude_lecture_id: Optional[int] = None,
    ) -> ConflictCheck:
        return self.detector.check_time_conflicts(course, on_date, time, exclude_lecture_id)

    def check_conflicts(
        self, lecture_id: int, new_date: date, new_time: Optional[str], actor: Actor
    ) -> OperationResult:
        """Preview the conflicts a postponement of this lecture would hit"""

        def run():
            if not can_view_schedule(actor):
                raise PermissionDenied()
            lecture = self._require_lecture(lecture_id)
            check = self.check_time_conflicts(lecture.course, new_date, new_time, lecture.id)
            return OperationResult.ok(check.message, check.to_dict())

        return self._run("Conflict check", lecture_id, run)

    def get_postponement_stats(self, lecture_id: int, actor: Actor) -> OperationResult:
        def run():
            if not can_view_schedule(actor):
                raise PermissionDenied()
            lecture = self._require_lecture(lecture_id)
            stats = PostponementStats(
                **postponement_stats(self.db, lecture.course, self.settings.max_postponements)
            )
            return OperationResult.ok("Postponement statistics", stats.model_dump())

        return self._run("Postponement stats", lecture_id, run)

    # ------------------------------------------------------------------
    # Postpone
    # ------------------------------------------------------------------

    def postpone(
        self,
        lecture_id: int,
        new_date: date,
        new_time: Optional[str],
        postponed_by: PostponedBy,
        reason: Optional[str],
        actor: Actor,
        force: bool = False,
    ) -> OperationResult:
        """
        Postpone a lecture to a new date/time.

        Validation (permission, state, course limit, trainer conflicts) happens
        before any write. The original's status change, the makeup insert and
        the course length bump are committed together or not at all. Past
        dates are accepted so that schedules can be corrected after the fact.
        """
        return self._run(
            "Postponement",
            lecture_id,
            lambda: self._postpone(
                lecture_id, new_date, new_time, postponed_by, reason, actor, force
            ),
        )

    def _postpone(
        self,
        lecture_id: int,
        new_date: date,
        new_time: Optional[str],
        postponed_by: PostponedBy,
        reason: Optional[str],
        actor: Actor,
        force: bool,
    ) -> OperationResult:
        try:
            postponed_by = PostponedBy(postponed_by)
        except ValueError as e:
            raise InvalidRequest(f"Unknown postponed_by value: {postponed_by!r}") from e

        course, lecture = self._lock_lecture_and_course(lecture_id)

        if not can_postpone(actor, course):
            raise PermissionDenied("You do not have permission to postpone this lecture.")

        if not can_be_postponed(lecture):
            raise CannotPostpone()

        limit = self.check_postponement_limit(course)
        if not limit.allowed:
            raise MaxPostponementsReached(
                limit.message, {"current": limit.current, "max": limit.max}
            )

        check = self.check_time_conflicts(course, new_date, new_time, lecture.id)
        if check.has_conflict:
            if not (force and self._may_override(actor)):
                raise TimeConflict(
                    check.message, {"conflicts": [c.to_dict() for c in check.conflicts]}
                )
            audit.record_conflict_override(actor, lecture.id, check.conflicts)

        # Original keeps its date/time; only its status and notes change
        lecture.attendance = postponed_state_for(postponed_by).value
        lecture.notes = f"Postponement reason: {reason}" if reason else None
        lecture.postponed_at = self.clock()

        makeup = self.repo.add_lecture(
            self.db,
            course_id=course.id,
            lecture_number=self.repo.max_lecture_number(self.db, course.id) + 1,
            date=new_date,
            time=new_time or lecture.time or course.lecture_time or self.settings.default_lecture_time,
            attendance=Attendance.PENDING.value,
            is_makeup=True,
            makeup_for=lecture.id,
            notes=f"Makeup lecture for lecture #{lecture.lecture_number}",
        )

        course.lectures_count = (course.lectures_count or 0) + 1

        summary = (
            f"Lecture {lecture.id} (#{lecture.lecture_number}) of course {course.id} postponed "
            f"to {new_date} {makeup.time or ''}, makeup #{makeup.lecture_number}"
        )
        makeup_id = makeup.id

        self.db.commit()
        self._refresh_committed(lecture, makeup)

        logger.info(f"✅ {summary}")
        audit.record_postponement(actor, lecture_id, makeup_id)

        return OperationResult.ok(
            "Lecture postponed and makeup lecture created.",
            {"original_lecture": lecture, "new_lecture": makeup},
        )

    def _may_override(self, actor: Actor) -> bool:
        return self.settings.allow_conflict_override and can_override_conflicts(actor)

    # ------------------------------------------------------------------
    # Cancel postponement
    # ------------------------------------------------------------------

    def cancel_postponement(self, lecture_id: int, actor: Actor) -> OperationResult:
        """
        Undo a postponement: delete the makeup lecture, shrink the course back
        and return the original to pending. Refuses when the makeup has
        already been held, so recorded attendance is never thrown away.
        """
        return self._run(
            "Cancel postponement", lecture_id, lambda: self._cancel_postponement(lecture_id, actor)
        )

    def _cancel_postponement(self, lecture_id: int, actor: Actor) -> OperationResult:
        course, lecture = self._lock_lecture_and_course(lecture_id)

        if not can_cancel_postponement(actor, course):
            raise PermissionDenied("You do not have permission to cancel this postponement.")

        if not is_postponed(lecture):
            raise NotPostponed()

        makeup = self.repo.find_makeup_for(self.db, lecture.id)
        makeup_id = None
        if makeup:
            if is_held(makeup):
                raise MakeupAlreadyCompleted()
            if is_postponed(makeup):
                raise MakeupPostponed()

            makeup_id = makeup.id
            course.lectures_count = max(0, (course.lectures_count or 0) - 1)
            self.repo.delete_lecture(self.db, makeup)

        lecture.attendance = Attendance.PENDING.value
        lecture.notes = None
        lecture.postponed_at = None

        self.db.commit()
        self._refresh_committed(lecture)

        logger.info(f"✅ Postponement of lecture {lecture_id} cancelled (makeup deleted: {makeup_id})")
        audit.record_cancellation(actor, lecture_id, makeup_id)

        return OperationResult.ok(
            "Postponement cancelled and makeup lecture deleted."
            if makeup_id
            else "Postponement cancelled.",
            {"lecture": lecture, "makeup_deleted": makeup_id is not None},
        )

    # ------------------------------------------------------------------
    # Attendance & schedule
    # ------------------------------------------------------------------

    def record_attendance(
        self,
        lecture_id: int,
        attendance: Attendance,
        notes: Optional[str],
        actor: Actor,
    ) -> OperationResult:
        """Move a pending lecture to a held state"""

        def run():
            try:
                target = Attendance(attendance)
            except ValueError as e:
                raise InvalidRequest(f"Unknown attendance value: {attendance!r}") from e
            if target not in HELD_STATES:
                raise InvalidTransition(
                    "Use postpone to postpone a lecture; attendance must be a held value."
                )

            course, lecture = self._lock_lecture_and_course(lecture_id)

            if not can_record_attendance(actor, course):
                raise PermissionDenied("You do not have permission to update this lecture.")

            if not can_transition(attendance_of(lecture), target):
                raise InvalidTransition()

            lecture.attendance = target.value
            if notes is not None:
                lecture.notes = notes

            self.db.commit()
            self._refresh_committed(lecture)
            logger.info(f"✅ Lecture {lecture_id} marked {target.value}")
            return OperationResult.ok("Attendance recorded.", {"lecture": lecture})

        return self._run("Record attendance", lecture_id, run)

    def generate_schedule(self, course_id: int, actor: Actor) -> OperationResult:
        """Create the initial lectures of a course from its cadence"""

        def run():
            course = self.repo.lock_course(self.db, course_id)
            if not course:
                raise NotFound("Course not found.")
            if not can_generate_schedule(actor):
                raise PermissionDenied("You do not have permission to generate schedules.")

            lectures = generate_lecture_schedule(self.db, course)
            self.db.commit()
            self._refresh_committed(*lectures)
            return OperationResult.ok(
                f"Generated {len(lectures)} lectures.", {"lectures": lectures}
            )

        return self._run("Schedule generation for course", course_id, run)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_lecture(self, lecture_id: int) -> Lecture:
        lecture = self.repo.get_lecture(self.db, lecture_id)
        if not lecture:
            raise NotFound()
        return lecture

    def _refresh_committed(self, *instances) -> None:
        """Reload rows after a commit. The commit stands even when a reload fails."""
        for instance in instances:
            try:
                self.db.refresh(instance)
            except SQLAlchemyError as e:
                logger.warning(f"⚠️ Committed {type(instance).__name__} could not be reloaded: {e}")

    def _lock_lecture_and_course(self, lecture_id: int) -> tuple[Course, Lecture]:
        course_id = self.db.query(Lecture.course_id).filter(Lecture.id == lecture_id).scalar()
        if course_id is None:
            raise NotFound()

        course = self.repo.lock_course(self.db, course_id)
        lecture = self.repo.lock_lecture(self.db, lecture_id)
        if course is None or lecture is None:
            raise NotFound()
        return course, lecture

    def _run(self, action: str, target_id: int, operation: Callable[[], OperationResult]) -> OperationResult:
        """Run one transactional operation, turning every failure into a result"""
        try:
            return operation()
        except LectureOperationError as e:
            self.db.rollback()
            logger.info(f"⚠️ {action} {target_id} rejected: {e.code} - {e.message}")
            return OperationResult.from_error(e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ {action} {target_id} failed: {e}")
            return OperationResult.from_error(TransactionFailure())

"""Lecture domain errors.

Every expected failure of a scheduling operation is one of these. Services
raise them internally and hand them back to callers as an OperationResult.
"""

from typing import Any, Optional


class LectureOperationError(Exception):
    """Base class carrying a stable result code for API responses"""

    code = "error"
    default_message = "The operation could not be completed."

    def __init__(self, message: Optional[str] = None, data: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.data = data or {}
        super().__init__(self.message)


class NotFound(LectureOperationError):
    code = "not_found"
    default_message = "Lecture not found."


class InvalidRequest(LectureOperationError):
    code = "invalid_request"
    default_message = "The request is invalid."


class CannotPostpone(LectureOperationError):
    code = "cannot_postpone"
    default_message = "This lecture cannot be postponed. It may already be held or postponed."


class MaxPostponementsReached(LectureOperationError):
    code = "max_postponements_reached"
    default_message = "The course has reached its postponement limit."


class TimeConflict(LectureOperationError):
    code = "time_conflict"
    default_message = "The trainer already has another lecture at this time."


class PermissionDenied(LectureOperationError):
    code = "permission_denied"
    default_message = "You do not have permission to perform this action."


class NotPostponed(LectureOperationError):
    code = "not_postponed"
    default_message = "This lecture is not postponed."


class MakeupAlreadyCompleted(LectureOperationError):
    code = "makeup_completed"
    default_message = (
        "The postponement cannot be cancelled because its makeup lecture has already been held."
    )


class MakeupPostponed(LectureOperationError):
    code = "makeup_postponed"
    default_message = (
        "The makeup lecture was itself postponed. Cancel that postponement first."
    )


class InvalidTransition(LectureOperationError):
    code = "invalid_transition"
    default_message = "Attendance can only be recorded for a pending lecture."


class InvalidSchedule(LectureOperationError):
    code = "invalid_schedule"
    default_message = "The course has no usable cadence (start date and lecture days)."


class ScheduleAlreadyGenerated(LectureOperationError):
    code = "schedule_exists"
    default_message = "Lectures have already been generated for this course."


class TransactionFailure(LectureOperationError):
    code = "transaction_failure"
    default_message = "An unexpected error occurred. No changes were saved."

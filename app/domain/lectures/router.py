"""Lecture router - FastAPI endpoints for postponement workflows"""

import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...database import get_db
from .actors import Actor
from .schemas import (
    CheckConflictsRequest,
    LectureDetailResponse,
    LectureResponse,
    OperationResponse,
    PostponeRequest,
    RecordAttendanceRequest,
)
from .service import OperationResult, PostponementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lectures", tags=["Lectures"])

STATUS_BY_CODE = {
    "success": 200,
    "not_found": 404,
    "permission_denied": 403,
    "transaction_failure": 500,
}


def get_postponement_service(db: Session = Depends(get_db)) -> PostponementService:
    """Dependency injection for PostponementService"""
    return PostponementService(db)


def _serialize(value):
    """ORM lectures inside result data become LectureResponse payloads"""
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if hasattr(value, "__table__"):
        return LectureResponse.model_validate(value).model_dump(mode="json")
    return value


def _respond(result: OperationResult) -> JSONResponse:
    body = OperationResponse(
        success=result.success,
        code=result.code,
        message=result.message,
        data={key: _serialize(value) for key, value in result.data.items()},
    )
    status_code = STATUS_BY_CODE.get(result.code, 422)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump()))


# ============================================================================
# LECTURES
# ============================================================================


@router.get("/{lecture_id}", response_model=LectureDetailResponse)
async def get_lecture(
    lecture_id: int,
    service: PostponementService = Depends(get_postponement_service),
):
    """Get a lecture with its original (for makeups) and its makeup (for postponed lectures)"""
    detail = service.get_lecture_detail(lecture_id)
    original = detail["original_lecture"]
    makeup = detail["makeup_lecture"]
    return LectureDetailResponse(
        **LectureResponse.model_validate(detail["lecture"]).model_dump(),
        original_lecture=LectureResponse.model_validate(original) if original else None,
        makeup_lecture=LectureResponse.model_validate(makeup) if makeup else None,
    )


@router.put("/{lecture_id}/attendance")
async def record_attendance(
    lecture_id: int,
    data: RecordAttendanceRequest,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Record the outcome of a pending lecture"""
    return _respond(service.record_attendance(lecture_id, data.attendance, data.notes, actor))


# ============================================================================
# POSTPONEMENT
# ============================================================================


@router.post("/{lecture_id}/postpone")
async def postpone_lecture(
    lecture_id: int,
    data: PostponeRequest,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Postpone a lecture and create its makeup lecture"""
    result = service.postpone(
        lecture_id,
        data.new_date,
        data.new_time,
        data.postponed_by,
        data.reason,
        actor,
        data.force,
    )
    return _respond(result)


@router.post("/{lecture_id}/check-conflicts")
async def check_conflicts(
    lecture_id: int,
    data: CheckConflictsRequest,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Preview trainer conflicts for a candidate date/time"""
    return _respond(service.check_conflicts(lecture_id, data.new_date, data.new_time, actor))


@router.post("/{lecture_id}/cancel-postponement")
async def cancel_postponement(
    lecture_id: int,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Cancel a postponement and delete its makeup lecture"""
    return _respond(service.cancel_postponement(lecture_id, actor))


@router.get("/{lecture_id}/postponement-stats")
async def postponement_stats(
    lecture_id: int,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Get postponement statistics for the lecture's course"""
    return _respond(service.get_postponement_stats(lecture_id, actor))


# ============================================================================
# SCHEDULE
# ============================================================================


@router.post("/courses/{course_id}/schedule")
async def generate_schedule(
    course_id: int,
    actor: Actor = Depends(get_current_actor),
    service: PostponementService = Depends(get_postponement_service),
):
    """Generate the initial lectures of a course from its cadence"""
    return _respond(service.generate_schedule(course_id, actor))


__all__ = [
    "router",
    "get_lecture",
    "record_attendance",
    "postpone_lecture",
    "check_conflicts",
    "cancel_postponement",
    "postponement_stats",
    "generate_schedule",
]

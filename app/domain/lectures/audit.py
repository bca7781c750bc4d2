"""Best-effort audit trail for scheduling decisions.

Audit lines go to the ``app.audit`` logger. A failure to write one is logged
and swallowed: it never blocks or rolls back the business mutation.
"""

import logging

from .actors import Actor, describe

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("app.audit")


def record_conflict_override(actor: Actor, lecture_id: int, conflicts: list) -> None:
    try:
        audit_logger.info(
            f"🔓 Conflict override by {actor.role} #{actor.actor_id} for lecture {lecture_id}: "
            f"{[c.lecture_id for c in conflicts]}",
            extra={
                "event": "conflict_override",
                "actor": describe(actor),
                "lecture_id": lecture_id,
                "conflicts": [c.to_dict() for c in conflicts],
            },
        )
    except Exception as e:
        logger.warning(f"⚠️ Failed to write conflict override audit entry: {e}")


def record_postponement(actor: Actor, original_id: int, makeup_id: int) -> None:
    try:
        audit_logger.info(
            f"📅 Lecture {original_id} postponed by {actor.role} #{actor.actor_id}, makeup {makeup_id}",
            extra={
                "event": "lecture_postponed",
                "actor": describe(actor),
                "lecture_id": original_id,
                "makeup_lecture_id": makeup_id,
            },
        )
    except Exception as e:
        logger.warning(f"⚠️ Failed to write postponement audit entry: {e}")


def record_cancellation(actor: Actor, lecture_id: int, makeup_id) -> None:
    try:
        audit_logger.info(
            f"↩️ Postponement of lecture {lecture_id} cancelled by {actor.role} #{actor.actor_id}"
            + (f", makeup {makeup_id} deleted" if makeup_id else ""),
            extra={
                "event": "postponement_cancelled",
                "actor": describe(actor),
                "lecture_id": lecture_id,
                "makeup_lecture_id": makeup_id,
            },
        )
    except Exception as e:
        logger.warning(f"⚠️ Failed to write cancellation audit entry: {e}")

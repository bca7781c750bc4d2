"""
Callers of the scheduling operations.

An actor is one of a closed set of variants resolved by the authorization
gate (app.auth). Capability checks live here, one function per operation,
so no caller compares role strings directly.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class TrainerActor:
    trainer_id: int
    role = "trainer"

    @property
    def actor_id(self) -> Optional[int]:
        return self.trainer_id


@dataclass(frozen=True)
class CustomerServiceActor:
    user_id: int
    role = "customer_service"

    @property
    def actor_id(self) -> Optional[int]:
        return self.user_id


@dataclass(frozen=True)
class AdminActor:
    user_id: int
    role = "admin"

    @property
    def actor_id(self) -> Optional[int]:
        return self.user_id


@dataclass(frozen=True)
class FinanceActor:
    user_id: int
    role = "finance"

    @property
    def actor_id(self) -> Optional[int]:
        return self.user_id


@dataclass(frozen=True)
class AnonymousActor:
    role = "anonymous"

    @property
    def actor_id(self) -> Optional[int]:
        return None


Actor = Union[TrainerActor, CustomerServiceActor, AdminActor, FinanceActor, AnonymousActor]

STAFF_ACTORS = {
    "customer_service": CustomerServiceActor,
    "admin": AdminActor,
    "finance": FinanceActor,
}


def _is_privileged(actor: Actor) -> bool:
    return isinstance(actor, (CustomerServiceActor, AdminActor))


def _teaches(actor: Actor, course) -> bool:
    return (
        isinstance(actor, TrainerActor)
        and course is not None
        and course.trainer_id is not None
        and course.trainer_id == actor.trainer_id
    )


def can_postpone(actor: Actor, course) -> bool:
    """Staff may postpone anything; trainers only lectures of their own courses"""
    return _is_privileged(actor) or _teaches(actor, course)


def can_cancel_postponement(actor: Actor, course) -> bool:
    return can_postpone(actor, course)


def can_record_attendance(actor: Actor, course) -> bool:
    return _is_privileged(actor) or _teaches(actor, course)


def can_override_conflicts(actor: Actor) -> bool:
    return _is_privileged(actor)


def can_generate_schedule(actor: Actor) -> bool:
    return _is_privileged(actor)


def can_view_schedule(actor: Actor) -> bool:
    return not isinstance(actor, AnonymousActor)


def describe(actor: Actor) -> dict:
    """Identity block for log records"""
    return {"role": actor.role, "actor_id": actor.actor_id}

"""
Authorization gate.

Resolves a bearer credential to an Actor. Tokens are issued by the login
service and have the form ``<type>-<id>-<timestamp>-<signature>`` where type is
``trainer`` or ``user`` and the signature is the first 16 hex characters of
HMAC-SHA256(SECRET_KEY, "<type>-<id>-<timestamp>").

Missing, malformed, expired or forged credentials resolve to AnonymousActor;
the capability checks of each operation decide what an anonymous caller may do.
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import SECRET_KEY, TOKEN_MAX_AGE_SECONDS
from .database import get_db
from .domain.lectures.actors import STAFF_ACTORS, Actor, AnonymousActor, TrainerActor
from .models import Trainer, User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

TOKEN_TYPES = ("trainer", "user")


def compute_signature(token_type: str, subject_id: int, timestamp: int, secret: str = SECRET_KEY) -> str:
    payload = f"{token_type}-{subject_id}-{timestamp}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()[:16]


def sign_token(token_type: str, subject_id: int, timestamp: Optional[int] = None) -> str:
    """Build a token the way the login service does"""
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"{token_type}-{subject_id}-{timestamp}-{compute_signature(token_type, subject_id, timestamp)}"


def parse_token(token: str, now: Optional[float] = None) -> Optional[tuple[str, int]]:
    """
    Verify a token's signature and age.
    Returns (type, id) or None when the token must not be trusted.
    """
    parts = token.split("-")
    if len(parts) != 4:
        logger.warning(f"⚠️ Malformed token received: {len(parts)} parts")
        return None

    token_type, raw_id, raw_ts, signature = parts
    if token_type not in TOKEN_TYPES:
        logger.warning(f"⚠️ Unknown token type: {token_type!r}")
        return None

    try:
        subject_id = int(raw_id)
        timestamp = int(raw_ts)
    except ValueError:
        logger.warning("⚠️ Token id/timestamp is not numeric")
        return None

    expected = compute_signature(token_type, subject_id, timestamp)
    if not hmac.compare_digest(expected, signature):
        logger.warning(f"⚠️ Invalid token signature for {token_type} {subject_id}")
        return None

    now = time.time() if now is None else now
    if now - timestamp > TOKEN_MAX_AGE_SECONDS:
        logger.info(f"ℹ️ Token expired for {token_type} {subject_id}")
        return None
    if timestamp > now + 60:  # Allow 60 seconds clock skew
        logger.warning("⚠️ Token issued in the future")
        return None

    return token_type, subject_id


def resolve_actor(db: Session, token: Optional[str]) -> Actor:
    """Map a credential to an actor; anything untrusted is anonymous"""
    if not token:
        return AnonymousActor()

    parsed = parse_token(token)
    if not parsed:
        return AnonymousActor()

    token_type, subject_id = parsed

    if token_type == "trainer":
        trainer = db.query(Trainer).filter(Trainer.id == subject_id).first()
        if trainer and trainer.status == "active":
            return TrainerActor(trainer_id=trainer.id)
        logger.warning(f"⚠️ Token for unknown or inactive trainer {subject_id}")
        return AnonymousActor()

    user = db.query(User).filter(User.id == subject_id).first()
    if not user or user.status != "active":
        logger.warning(f"⚠️ Token for unknown or inactive user {subject_id}")
        return AnonymousActor()

    actor_cls = STAFF_ACTORS.get(user.role)
    if actor_cls is None:
        logger.warning(f"⚠️ User {user.id} has unsupported role {user.role!r}")
        return AnonymousActor()
    return actor_cls(user_id=user.id)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the caller from the Authorization header"""
    token = credentials.credentials if credentials else None
    actor = resolve_actor(db, token)
    logger.debug(f"🔍 Request actor: {actor.role} #{actor.actor_id}")
    return actor

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lectures.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Bearer tokens older than this are rejected (default 30 days)
TOKEN_MAX_AGE_SECONDS = int(os.getenv("TOKEN_MAX_AGE_SECONDS", str(30 * 24 * 3600)))

# Frontend base URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Course scheduling
# Maximum number of postponed lectures a single course may carry at once
COURSE_MAX_POSTPONEMENTS = int(os.getenv("COURSE_MAX_POSTPONEMENTS", "3"))
# HH:MM used for a makeup when neither the request, the lecture nor the course has a time
DEFAULT_LECTURE_TIME = os.getenv("DEFAULT_LECTURE_TIME") or None
# Privileged roles (customer_service, admin) may force through trainer conflicts
COURSE_ALLOW_CONFLICT_OVERRIDE = (
    os.getenv("COURSE_ALLOW_CONFLICT_OVERRIDE", "true").lower() == "true"
)


@dataclass(frozen=True)
class SchedulingSettings:
    """Scheduling knobs handed to the postponement service explicitly."""

    max_postponements: int = 3
    default_lecture_time: Optional[str] = None
    allow_conflict_override: bool = True


def get_scheduling_settings() -> SchedulingSettings:
    return SchedulingSettings(
        max_postponements=COURSE_MAX_POSTPONEMENTS,
        default_lecture_time=DEFAULT_LECTURE_TIME,
        allow_conflict_override=COURSE_ALLOW_CONFLICT_OVERRIDE,
    )

import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

# Pool settings only apply to server databases (PostgreSQL)
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "30"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))

ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def _engine_options(url: str) -> dict:
    """SQLite connections are shared with the request threadpool; servers get a tuned pool"""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
    }


def _log_slow_queries(target: Engine, threshold: float) -> None:
    """Warn about statements slower than ``threshold`` seconds"""

    @event.listens_for(target, "before_cursor_execute")
    def _start_timer(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("lecture_query_started", []).append(time.time())

    @event.listens_for(target, "after_cursor_execute")
    def _stop_timer(conn, _cursor, statement, _parameters, _context, _executemany):
        elapsed = time.time() - conn.info["lecture_query_started"].pop()
        if elapsed > threshold:
            logger.warning(f"🐌 Slow query ({elapsed:.2f}s): {statement[:200]}...")


def build_engine(url: str) -> Engine:
    try:
        new_engine = create_engine(url, echo=False, **_engine_options(url))
    except Exception as e:
        logger.error(f"❌ Could not create database engine for {url.split('://')[0]}: {e}")
        raise

    backend = new_engine.url.get_backend_name()
    if backend == "sqlite":
        logger.info(f"✅ Database engine ready ({backend})")
    else:
        logger.info(
            f"✅ Database engine ready ({backend}, pool={POOL_SIZE}+{MAX_OVERFLOW}, "
            f"timeout={POOL_TIMEOUT}s)"
        )

    if ENABLE_QUERY_LOGGING:
        _log_slow_queries(new_engine, SLOW_QUERY_THRESHOLD)
    return new_engine


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """One session per request, closed when the response is sent"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import FRONTEND_URL
from .database import Base, engine
from .domain.lectures.router import router as lectures_router

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Lecture scheduling API starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Tables ready: users, trainers, courses, lectures")
    except Exception as e:
        # Several uvicorn workers may race on the first start
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("ℹ️ Tables already created by another worker")
        else:
            logger.error(f"❌ Failed to create database tables: {e}")

    yield
    logger.info("👋 Lecture scheduling API shutting down...")


app = FastAPI(title="Lecture Scheduling API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return request validation errors in the same envelope as scheduling results"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            {
                "success": False,
                "code": "invalid_request",
                "message": "The request is invalid.",
                "data": {"errors": exc.errors()},
            }
        ),
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise

    if response.status_code >= 400:
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({(time.time() - start) * 1000:.0f}ms)"
        )
    return response


# CORS Configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(lectures_router)


@app.get("/")
def root():
    return {"message": "Lecture Scheduling API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}

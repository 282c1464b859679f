import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .database import Base, engine
from .domain.appointments import router as appointments_router
from .domain.appointments import status_router
from .domain.blackouts import router as blackouts_router
from .domain.calendar import router as calendar_router
from .domain.calendar import schedule_router
from .domain.settlement import router as settlement_router
from .shared.errors import BookingRejected

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables ready")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="BarberFlow API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingRejected)
async def booking_rejected_handler(request: Request, exc: BookingRejected):
    """Rejections carry a machine-readable reason next to the message"""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.reason.value}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason.value},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(calendar_router)
app.include_router(schedule_router)
app.include_router(blackouts_router)
app.include_router(appointments_router)
app.include_router(settlement_router)
app.include_router(status_router)


@app.get("/")
def root():
    return {"message": "BarberFlow API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}

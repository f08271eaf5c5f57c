"""
Main entry point of the vaccination portal API.
Start: uvicorn vaccination_portal.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

import vaccination_portal.models  # noqa: F401 (registers every model in Base.metadata)
from vaccination_portal import __version__
from vaccination_portal.config import settings
from vaccination_portal.database import Base, engine
from vaccination_portal.errors import PortalError, StoreError
from vaccination_portal.routers import auth, dashboard, drives, reports, students

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: creates missing tables at startup."""
    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables checked.")
    yield


app = FastAPI(
    title="School Vaccination Portal API",
    description="Students, vaccination drives, vaccination records and reports",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS: any localhost port in development (restrict in production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(auth.router)
app.include_router(students.router)
app.include_router(drives.router)
app.include_router(reports.router)
app.include_router(dashboard.router)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """Domain errors raised by the services: the message goes to the client as is."""
    if isinstance(exc, StoreError):
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database failures not already classified by a service."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=StoreError.status_code,
        content={"detail": "The database is unavailable, please retry later."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catches every unhandled exception so the 500 response still goes through
    CORSMiddleware. The exception text is only exposed in development.
    """
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    content = {"detail": "An unexpected error occurred."}
    if settings.ENV == "development":
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/api/health", tags=["Health"])
def health_check():
    """Checks that the API is up."""
    return {"status": "ok", "service": "School Vaccination Portal API", "version": __version__}

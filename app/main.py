import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import ServiceError
from app.core.logging_middleware import LoggingMiddleware
from app.db.init_db import init_db
from app.routers.auth import router as auth_router
from app.routers.health import router as health_router
from app.routers.realtime import router as realtime_router
from app.routers.requests import router as requests_router
from app.routers.students import router as students_router
from app.services.broadcaster import Broadcaster

logging.basicConfig(level=logging.INFO if settings.is_production else logging.DEBUG)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.VERSION)

# one broadcaster per app; handed to services through app.state
app.state.broadcaster = Broadcaster()

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


# Error envelope
def _failure(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def _internal(request: Request, exc: Exception, message: str = "Internal server error") -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    if settings.is_production:
        return _failure(500, message)
    cause = exc.__cause__ or exc
    return _failure(500, message, error=str(cause))


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        return _internal(request, exc, exc.message)
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        location = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
        message = f"Invalid value for {location}: {errors[0].get('msg')}"
    return _failure(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _failure(exc.status_code, "Endpoint not found", path=request.url.path)
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    return _internal(request, exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    return _internal(request, exc)


# Startup event
@app.on_event("startup")
def on_startup():
    try:
        init_db()
    except Exception:
        # refuse to serve without a working store
        logger.critical("Database initialization failed", exc_info=True)
        raise
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)


# Include routers
app.include_router(health_router, tags=["health"])
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(students_router, prefix="/api/students", tags=["students"])
app.include_router(requests_router, prefix="/api/requests", tags=["requests"])
app.include_router(realtime_router, tags=["realtime"])

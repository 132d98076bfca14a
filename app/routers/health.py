from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.errors import InternalError
from app.models.admin import Admin
from app.models.request import MaintenanceRequest
from app.models.student import Student

router = APIRouter()

ENDPOINTS = [
    "GET /api/health",
    "POST /api/login",
    "POST /api/students/register",
    "DELETE /api/students/{id}",
    "POST /api/requests",
    "GET /api/requests",
    "GET /api/requests/block/{residence}/{block}",
    "PUT /api/requests/{id}/status",
    "WS /ws",
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
def root():
    return {
        "success": True,
        "message": f"{settings.APP_NAME} server is running",
        "timestamp": _now(),
        "mode": settings.ENVIRONMENT,
        "version": settings.VERSION,
        "endpoints": ENDPOINTS,
    }


@router.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        students = db.scalar(select(func.count(Student.id)))
        admins = db.scalar(select(func.count(Admin.id)))
        requests = db.scalar(select(func.count(MaintenanceRequest.id)))
    except SQLAlchemyError as exc:
        raise InternalError("Database connection failed") from exc

    return {
        "success": True,
        "message": f"{settings.APP_NAME} server is healthy",
        "database": "Connected",
        "students": students,
        "admins": admins,
        "requests": requests,
        "timestamp": _now(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }

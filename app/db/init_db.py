import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.admin import Admin
from app.models.request import MaintenanceRequest
from app.models.student import Student

logger = logging.getLogger(__name__)


def seed_admin(db: Session) -> Admin:
    email = settings.ADMIN_EMAIL.strip().lower()
    admin = db.scalar(select(Admin).where(Admin.email == email))
    if admin:
        logger.info("Admin account already exists")
        return admin

    admin = Admin(email=email, hashed_password=hash_password(settings.ADMIN_PASSWORD))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Default admin account created: %s", email)
    return admin


def init_db() -> None:
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        seed_admin(db)

        students = db.scalar(select(func.count(Student.id)))
        requests = db.scalar(select(func.count(MaintenanceRequest.id)))
        logger.info("Current data: %s students, %s requests", students, requests)

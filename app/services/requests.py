"""
Maintenance request lifecycle.

Owns student registration and deletion (because deletion has to freeze the
author onto their requests), request creation, listing and status changes.
Every successful mutation schedules a fan-out to the admin topic and to the
author's residence+block topic. The fan-out runs from the injected
BackgroundTasks queue, i.e. after the transaction committed and after the
response went out; a failed delivery never fails the operation.
"""

import logging
import re

from fastapi import BackgroundTasks
from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.config import (
    BLOCK_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    FULL_NAME_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    RESIDENCE_MAX_LENGTH,
    STATUS_APPROVED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    SUBJECT_MAX_LENGTH,
    VALID_STATUSES,
    settings,
)
from app.core.errors import DuplicateEmail, Forbidden, NotFound, ValidationError
from app.core.security import hash_password
from app.models.admin import Admin
from app.models.request import MaintenanceRequest
from app.models.student import Student
from app.schemas.request import RequestRead
from app.services.broadcaster import Broadcaster, Event, EventKind, Topic
from app.services.identity import Identity, Role

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
CONTACT_PATTERN = re.compile(r"[0-9]{10}")

_NEXT_STATUS = {
    STATUS_PENDING: STATUS_APPROVED,
    STATUS_APPROVED: STATUS_COMPLETED,
}


def resolve_request(row: MaintenanceRequest) -> RequestRead:
    """Live author fields while the account exists, the frozen snapshot after."""
    student = row.student
    if student is not None:
        full_name, residence, block = student.full_name, student.residence, student.block
    else:
        full_name, residence, block = row.student_name, row.student_residence, row.student_block

    return RequestRead(
        id=row.id,
        student_id=row.student_id,
        subject=row.subject,
        description=row.description,
        status=row.status,
        date_created=row.date_created,
        full_name=full_name,
        residence=residence,
        block=block,
    )


def check_transition(current: str, new: str, strict: bool = False) -> None:
    if new not in VALID_STATUSES:
        raise ValidationError("Invalid status.")
    if new == current:
        return
    # a request that left Pending never goes back
    if new == STATUS_PENDING:
        raise ValidationError(f"Cannot move a request from {current} back to {STATUS_PENDING}.")
    if strict and _NEXT_STATUS.get(current) != new:
        raise ValidationError(f"Cannot move a request from {current} to {new}.")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RequestService:
    def __init__(self, db: Session, broadcaster: Broadcaster, tasks: BackgroundTasks):
        self.db = db
        self.broadcaster = broadcaster
        self.tasks = tasks

    # ----- students -----

    def register_student(
        self,
        full_name: str | None,
        contact_number: str | None,
        email: str | None,
        residence: str | None,
        block: str | None,
        password: str | None,
    ) -> Student:
        if any(_blank(v) for v in (full_name, contact_number, email, residence, block, password)):
            raise ValidationError("All fields are required.")

        email = email.strip().lower()
        if not EMAIL_PATTERN.fullmatch(email):
            raise ValidationError("Invalid email format.")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
        if not CONTACT_PATTERN.fullmatch(contact_number):
            raise ValidationError("Contact number must be 10 digits.")

        full_name, residence, block = full_name.strip(), residence.strip(), block.strip()
        for label, value, limit in (
            ("Full name", full_name, FULL_NAME_MAX_LENGTH),
            ("Email", email, EMAIL_MAX_LENGTH),
            ("Residence", residence, RESIDENCE_MAX_LENGTH),
            ("Block", block, BLOCK_MAX_LENGTH),
        ):
            if len(value) > limit:
                raise ValidationError(f"{label} must be at most {limit} characters.")

        if self._email_taken(email):
            raise DuplicateEmail()

        student = Student(
            full_name=full_name,
            contact_number=contact_number,
            email=email,
            residence=residence,
            block=block,
            hashed_password=hash_password(password),
        )
        self.db.add(student)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race against a concurrent registration
            self.db.rollback()
            raise DuplicateEmail()

        self.db.refresh(student)
        logger.info("New student registered: %s", email)
        return student

    def _email_taken(self, email: str) -> bool:
        for model in (Student, Admin):
            if self.db.scalar(select(model.id).where(model.email == email)) is not None:
                return True
        return False

    def delete_student(self, requester: Identity, student_id: int) -> None:
        student = self.db.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found.")

        if requester.role is Role.STUDENT and requester.id != student_id:
            raise Forbidden("You can only delete your own account.")

        # snapshot and detach inside one transaction so no reader ever sees a
        # request without author fields
        try:
            self.db.execute(
                update(MaintenanceRequest)
                .where(MaintenanceRequest.student_id == student.id)
                .values(
                    student_name=student.full_name,
                    student_residence=student.residence,
                    student_block=student.block,
                    student_id=None,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.delete(student)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Student account deleted: id=%s (requests preserved)", student_id)

    # ----- requests -----

    def create_request(
        self, student_id: int | None, subject: str | None, description: str | None
    ) -> RequestRead:
        if student_id is None or _blank(subject) or _blank(description):
            raise ValidationError("All fields are required.")
        if len(subject) > SUBJECT_MAX_LENGTH or len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError("Input too long.")

        student = self.db.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found.")

        row = MaintenanceRequest(
            student_id=student.id,
            subject=subject.strip(),
            description=description.strip(),
            status=STATUS_PENDING,
            student_name=student.full_name,
            student_residence=student.residence,
            student_block=student.block,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record = self._load(row.id)
        logger.info("New request %s created by %s", record.id, record.full_name)

        self._broadcast(EventKind.REQUEST_CREATED, record)
        return record

    def list_requests(self) -> list[RequestRead]:
        rows = self.db.scalars(self._select()).all()
        return [resolve_request(r) for r in rows]

    def list_block_requests(self, residence: str, block: str) -> list[RequestRead]:
        stmt = (
            self._select()
            .outerjoin(Student, MaintenanceRequest.student_id == Student.id)
            .where(
                or_(
                    and_(Student.residence == residence, Student.block == block),
                    and_(
                        MaintenanceRequest.student_id.is_(None),
                        MaintenanceRequest.student_residence == residence,
                        MaintenanceRequest.student_block == block,
                    ),
                )
            )
        )
        rows = self.db.scalars(stmt).all()
        return [resolve_request(r) for r in rows]

    def update_status(self, request_id: int, new_status: str | None) -> RequestRead:
        if _blank(new_status):
            raise ValidationError("Status is required.")
        if new_status not in VALID_STATUSES:
            raise ValidationError("Invalid status.")

        row = self.db.scalar(
            select(MaintenanceRequest)
            .where(MaintenanceRequest.id == request_id)
            .with_for_update()
        )
        if row is None:
            raise NotFound("Request not found.")

        try:
            check_transition(row.status, new_status, strict=settings.STRICT_STATUS_FLOW)
        except ValidationError:
            self.db.rollback()
            raise

        row.status = new_status
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record = self._load(request_id)
        logger.info("Request %s status updated to %s", request_id, new_status)

        self._broadcast(EventKind.REQUEST_UPDATED, record)
        return record

    # ----- helpers -----

    @staticmethod
    def _select():
        return (
            select(MaintenanceRequest)
            .options(joinedload(MaintenanceRequest.student))
            .order_by(MaintenanceRequest.date_created.desc(), MaintenanceRequest.id.desc())
        )

    def _load(self, request_id: int) -> RequestRead:
        row = self.db.scalar(self._select().where(MaintenanceRequest.id == request_id))
        return resolve_request(row)

    def _broadcast(self, kind: EventKind, record: RequestRead) -> None:
        topics = [Topic.admin()]
        if record.residence is not None and record.block is not None:
            topics.append(Topic.for_block(record.residence, record.block))
        self.tasks.add_task(self.broadcaster.fan_out, topics, Event(kind, record.to_json()))

"""
Identity resolution for the two account kinds.

Admins and students live in separate tables; callers only ever see a single
tagged ``Identity`` whatever table the account came from.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import InvalidCredentials, Unauthorized
from app.core.security import create_access_token, decode_token, verify_password
from app.models.admin import Admin
from app.models.student import Student

logger = logging.getLogger(__name__)


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: Role
    profile: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def _find_account(db: Session, email: str) -> tuple[Role, Admin | Student] | None:
    # admin wins when the same address exists in both tables
    admin = db.scalar(select(Admin).where(func.lower(Admin.email) == email))
    if admin is not None:
        return Role.ADMIN, admin

    student = db.scalar(select(Student).where(func.lower(Student.email) == email))
    if student is not None:
        return Role.STUDENT, student

    return None


def authenticate(db: Session, email: str, password: str) -> Identity:
    """Return the identity owning ``email`` if ``password`` matches its hash."""
    email = (email or "").strip().lower()
    found = _find_account(db, email)
    if found is None:
        logger.info("Login failed: no account for %s", email)
        raise InvalidCredentials()

    role, account = found
    if not verify_password(password, account.hashed_password):
        logger.info("Login failed: bad password for %s", email)
        raise InvalidCredentials()

    logger.info("%s login successful: %s", role.value.capitalize(), email)
    return Identity(id=account.id, email=account.email, role=role, profile=account.profile())


def issue_token(identity: Identity) -> str:
    return create_access_token(
        {
            "sub": str(identity.id),
            "id": identity.id,
            "email": identity.email,
            "role": identity.role.value,
        }
    )


def verify_token(token: str) -> Identity:
    payload = decode_token(token)
    try:
        return Identity(
            id=int(payload["id"]),
            email=payload["email"],
            role=Role(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid or expired token.")

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.errors import ValidationError
from app.schemas.auth import LoginRequest, LoginResponse
from app.services.identity import authenticate, issue_token

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email and password are required"},
        401: {"description": "Invalid credentials"},
    },
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required.")

    identity = authenticate(db, payload.email, payload.password)

    return {
        "success": True,
        "token": issue_token(identity),
        "user": identity.profile,
        "role": identity.role.value,
    }

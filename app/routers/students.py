from fastapi import APIRouter, Depends

from app.core.current_user import get_current_identity
from app.core.deps import get_request_service
from app.schemas.student import StudentRegister
from app.services.identity import Identity
from app.services.requests import RequestService

router = APIRouter()


@router.post(
    "/register",
    responses={400: {"description": "Validation failed or email already registered"}},
)
def register(payload: StudentRegister, service: RequestService = Depends(get_request_service)):
    service.register_student(
        full_name=payload.full_name,
        contact_number=payload.contact_number,
        email=payload.email,
        residence=payload.residence,
        block=payload.block,
        password=payload.password,
    )
    return {"success": True, "message": "Registration successful."}


@router.delete(
    "/{student_id}",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Students may only delete their own account"},
        404: {"description": "Student not found"},
    },
)
def delete_student(
    student_id: int,
    me: Identity = Depends(get_current_identity),
    service: RequestService = Depends(get_request_service),
):
    service.delete_student(me, student_id)
    return {
        "success": True,
        "message": (
            "Student account deleted successfully. Your maintenance requests "
            "have been preserved for administrative purposes."
        ),
    }

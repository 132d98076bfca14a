from fastapi import APIRouter, Depends

from app.core.current_user import get_optional_identity
from app.core.deps import get_request_service
from app.core.errors import Forbidden
from app.schemas.request import RequestCreate, StatusUpdate
from app.services.identity import Identity, Role
from app.services.requests import RequestService

router = APIRouter()


@router.post(
    "",
    responses={
        400: {"description": "Missing or oversized fields"},
        403: {"description": "Token belongs to a different student"},
        404: {"description": "Student not found"},
    },
)
def create_request(
    payload: RequestCreate,
    me: Identity | None = Depends(get_optional_identity),
    service: RequestService = Depends(get_request_service),
):
    # open to kiosk submissions; a student token must match the author
    if me is not None and me.role is Role.STUDENT and me.id != payload.student_id:
        raise Forbidden("You can only submit requests for your own account.")

    service.create_request(payload.student_id, payload.subject, payload.description)
    return {"success": True, "message": "Request submitted successfully."}


@router.get("")
def list_requests(service: RequestService = Depends(get_request_service)):
    return {"success": True, "requests": [r.to_json() for r in service.list_requests()]}


@router.get("/block/{residence}/{block}")
def list_block_requests(
    residence: str,
    block: str,
    service: RequestService = Depends(get_request_service),
):
    requests = service.list_block_requests(residence, block)
    return {"success": True, "requests": [r.to_json() for r in requests]}


@router.put(
    "/{request_id}/status",
    responses={
        400: {"description": "Missing, invalid or disallowed status"},
        404: {"description": "Request not found"},
    },
)
def update_status(
    request_id: int,
    payload: StatusUpdate,
    service: RequestService = Depends(get_request_service),
):
    service.update_status(request_id, payload.status)
    return {"success": True, "message": "Request status updated successfully."}

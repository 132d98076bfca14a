from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.broadcaster import Broadcaster
from app.services.requests import RequestService


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_request_service(
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> RequestService:
    return RequestService(db, broadcaster, tasks)

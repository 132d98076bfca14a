import asyncio

import pytest

from app.core.errors import DuplicateEmail, Forbidden, NotFound, ValidationError
from app.models.request import MaintenanceRequest
from app.services.identity import Identity, Role
from app.services.requests import check_transition
from tests.data import STUDENT_A, STUDENT_B


def register(service, payload):
    return service.register_student(
        full_name=payload["fullName"],
        contact_number=payload["contactNumber"],
        email=payload["email"],
        residence=payload["residence"],
        block=payload["block"],
        password=payload["password"],
    )


def student_identity(student) -> Identity:
    return Identity(id=student.id, email=student.email, role=Role.STUDENT)


def test_create_schedules_fan_out_after_commit(service, broadcaster, tasks):
    student = register(service, STUDENT_A)
    record = service.create_request(student.id, "  Leak  ", "Tap leaking")

    assert record.subject == "Leak"
    # nothing is sent until the background queue runs
    assert broadcaster.sent == []

    asyncio.run(tasks())

    assert len(broadcaster.sent) == 1
    topics, kind, payload = broadcaster.sent[0]
    assert topics == ["admin", "block:Malema:2"]
    assert kind == "new-request"
    assert payload["id"] == record.id
    assert payload["studentId"] == student.id
    assert isinstance(payload["dateCreated"], str)


def test_update_schedules_request_updated(service, broadcaster, tasks):
    student = register(service, STUDENT_B)
    record = service.create_request(student.id, "Door", "Hinge broken")

    updated = service.update_status(record.id, "Approved")
    assert updated.status == "Approved"

    asyncio.run(tasks())

    kinds = [kind for _, kind, _ in broadcaster.sent]
    assert kinds == ["new-request", "request-updated"]
    topics, _, payload = broadcaster.sent[-1]
    assert topics == ["admin", "block:Malema:5"]
    assert payload["status"] == "Approved"


def test_failed_operations_schedule_nothing(service, broadcaster, tasks):
    with pytest.raises(NotFound):
        service.create_request(12345, "Leak", "Tap")
    with pytest.raises(NotFound):
        service.update_status(12345, "Approved")

    student = register(service, STUDENT_A)
    record = service.create_request(student.id, "Leak", "Tap")
    with pytest.raises(ValidationError):
        service.update_status(record.id, "Archived")

    asyncio.run(tasks())
    assert [kind for _, kind, _ in broadcaster.sent] == ["new-request"]


def test_register_duplicate(service):
    register(service, STUDENT_A)
    with pytest.raises(DuplicateEmail):
        register(service, {**STUDENT_A, "email": STUDENT_A["email"].upper()})


def test_delete_snapshots_then_detaches(service, db):
    student = register(service, STUDENT_A)
    service.create_request(student.id, "one", "first")
    service.create_request(student.id, "two", "second")

    service.delete_student(student_identity(student), student.id)

    db.expire_all()
    rows = db.query(MaintenanceRequest).all()
    assert len(rows) == 2
    for row in rows:
        assert row.student_id is None
        assert row.student_name == STUDENT_A["fullName"]
        assert row.student_residence == "Malema"
        assert row.student_block == "2"

    listed = service.list_block_requests("Malema", "2")
    assert [r.subject for r in listed] == ["two", "one"]
    assert all(r.full_name == STUDENT_A["fullName"] for r in listed)


def test_delete_checks_owner(service):
    a = register(service, STUDENT_A)
    b = register(service, STUDENT_B)

    with pytest.raises(Forbidden):
        service.delete_student(student_identity(b), a.id)

    admin = Identity(id=1, email="admin@rescare.com", role=Role.ADMIN)
    service.delete_student(admin, a.id)

    with pytest.raises(NotFound):
        service.delete_student(admin, a.id)


def test_live_fields_win_over_snapshot(service, db):
    student = register(service, STUDENT_A)
    record = service.create_request(student.id, "Leak", "Tap")

    # a stale snapshot is ignored while the account exists
    row = db.get(MaintenanceRequest, record.id)
    row.student_name = "Old Name"
    db.commit()

    resolved = service.list_requests()[0]
    assert resolved.full_name == STUDENT_A["fullName"]


@pytest.mark.parametrize(
    "current,new",
    [
        ("Pending", "Pending"),
        ("Pending", "Approved"),
        ("Pending", "Completed"),
        ("Approved", "Completed"),
        ("Completed", "Approved"),
    ],
)
def test_permissive_transitions(current, new):
    check_transition(current, new)


@pytest.mark.parametrize("current", ["Approved", "Completed"])
def test_no_transition_back_to_pending(current):
    with pytest.raises(ValidationError):
        check_transition(current, "Pending")


def test_strict_flow_allows_only_next_step():
    check_transition("Pending", "Approved", strict=True)
    check_transition("Approved", "Completed", strict=True)
    check_transition("Completed", "Completed", strict=True)

    for current, new in [("Pending", "Completed"), ("Completed", "Approved")]:
        with pytest.raises(ValidationError):
            check_transition(current, new, strict=True)

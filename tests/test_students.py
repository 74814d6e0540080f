from datetime import date
from typing import Dict

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments import service as assignment_service
from app.api.v1.attendance import service as attendance_service
from app.api.v1.batches import service as batch_service
from app.api.v1.followups import service as followup_service
from app.api.v1.students import service as student_service
from app.api.v1.students.schemas import StudentUpsert
from app.core.enums import AttendanceStatus, Role
from app.core.exceptions import ServiceError
from app.core.models import AttendanceRecord, FollowUp, Student, TeacherAssignment

DAY = date(2024, 3, 4)


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _roster(db: AsyncSession) -> None:
    """Batches X and Y with two students each plus one student without a batch."""
    await batch_service.upsert_batch(db, "X", "Batch X")
    await batch_service.upsert_batch(db, "Y", "Batch Y")
    for prn, name, batch in [
        ("x2", "Zara", "X"),
        ("x1", "Anil", "X"),
        ("y1", "Bela", "Y"),
        ("y2", "Chen", "Y"),
        ("n1", "Dev", None),
    ]:
        await student_service.upsert_student(db, StudentUpsert(prn=prn, name=name, batch_id=batch))


@pytest.mark.asyncio
async def test_upsert_twice_keeps_one_row(db_session: AsyncSession) -> None:
    payload = StudentUpsert(prn="1", name="A", email="a@example.com")
    await student_service.upsert_student(db_session, payload)
    await student_service.upsert_student(db_session, payload)

    assert await _count(db_session, Student) == 1


@pytest.mark.asyncio
async def test_upsert_replaces_every_field(db_session: AsyncSession) -> None:
    await batch_service.upsert_batch(db_session, "X", "X")
    await student_service.upsert_student(
        db_session, StudentUpsert(prn="1", name="A", email="a@example.com", mobile="111", batch_id="X")
    )
    await student_service.upsert_student(db_session, StudentUpsert(prn="1", name="B"))

    student = await student_service.get_student(db_session, "1")
    assert student.name == "B"
    # Replace, not merge: omitted fields are cleared
    assert student.email == ""
    assert student.mobile == ""
    assert student.batch_id is None


@pytest.mark.asyncio
async def test_upsert_with_unknown_batch_fails(db_session: AsyncSession) -> None:
    with pytest.raises(ServiceError) as exc:
        await student_service.upsert_student(db_session, StudentUpsert(prn="1", name="A", batch_id="nope"))
    assert exc.value.status_code == 409
    assert await student_service.get_student(db_session, "1") is None


@pytest.mark.asyncio
async def test_batch_upsert_renames_without_detaching(db_session: AsyncSession) -> None:
    await _roster(db_session)
    await batch_service.upsert_batch(db_session, "X", "Renamed")

    assert (await batch_service.get_batch(db_session, "X")).batch_name == "Renamed"
    assert [s.prn for s in await student_service.list_students(db_session, "X")] == ["x1", "x2"]


@pytest.mark.asyncio
async def test_delete_batch_detaches_students(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")

    assert await batch_service.delete_batch(db_session, "X") is True

    x1 = await student_service.get_student(db_session, "x1")
    x2 = await student_service.get_student(db_session, "x2")
    assert x1 is not None and x1.batch_id is None
    assert x2 is not None and x2.batch_id is None
    assert await _count(db_session, Student) == 5
    # Assignment to the removed batch is gone
    assert await assignment_service.list_teacher_batches(db_session, users["bt"]) == []


@pytest.mark.asyncio
async def test_delete_missing_batch_returns_false(db_session: AsyncSession) -> None:
    assert await batch_service.delete_batch(db_session, "ghost") is False


@pytest.mark.asyncio
async def test_delete_student_cascades(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")
    await attendance_service.mark_attendance(db_session, "x1", DAY, AttendanceStatus.ABSENT)
    await attendance_service.mark_attendance(db_session, "x2", DAY, AttendanceStatus.PRESENT)
    await followup_service.add_follow_up(db_session, "x1", DAY, "/proofs/x1.jpg", "Called parent")

    assert await student_service.delete_student(db_session, "x1") is True

    remaining = await db_session.execute(select(AttendanceRecord.student_prn))
    assert remaining.scalars().all() == ["x2"]
    assert await _count(db_session, FollowUp) == 0
    assert await _count(db_session, TeacherAssignment) == 1


@pytest.mark.asyncio
async def test_list_students_by_batch_and_all(db_session: AsyncSession) -> None:
    await _roster(db_session)

    assert [s.name for s in await student_service.list_students(db_session, "X")] == ["Anil", "Zara"]
    assert [s.name for s in await student_service.list_students(db_session)] == [
        "Anil", "Bela", "Chen", "Dev", "Zara",
    ]


@pytest.mark.asyncio
async def test_admin_and_attendance_teacher_list_everyone(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)

    for role, uid in [(Role.ADMIN, users["admin"]), (Role.ATTENDANCE_TEACHER, users["marker"])]:
        students = await student_service.list_students_for_role(db_session, uid, role)
        # Ordered by batch then name; the unbatched student sorts first
        assert [s.prn for s in students] == ["n1", "x1", "x2", "y1", "y2"]


@pytest.mark.asyncio
async def test_batch_teacher_lists_only_assigned_batches(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")

    students = await student_service.list_students_for_role(db_session, users["bt"], Role.BATCH_TEACHER)
    assert [s.prn for s in students] == ["x1", "x2"]
    assert all(s.batch_id == "X" for s in students)


@pytest.mark.asyncio
async def test_batch_teacher_with_two_batches(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "Y")
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")

    students = await student_service.list_students_for_role(db_session, users["bt"], "Batch Teacher")
    assert [s.prn for s in students] == ["x1", "x2", "y1", "y2"]


@pytest.mark.asyncio
async def test_unrecognized_role_lists_nothing(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    assert await student_service.list_students_for_role(db_session, users["admin"], "Principal") == []


@pytest.mark.asyncio
async def test_assignment_is_idempotent(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")

    assert await _count(db_session, TeacherAssignment) == 1
    assert [b.batch_id for b in await assignment_service.get_teacher_assignments(db_session, users["bt"])] == ["X"]
    assert [u.username for u in await assignment_service.get_batch_assignments(db_session, "X")] == ["bt"]


@pytest.mark.asyncio
async def test_assignment_to_unknown_batch_fails(db_session: AsyncSession, users: Dict[str, int]) -> None:
    with pytest.raises(ServiceError) as exc:
        await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "nope")
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_remove_assignment(db_session: AsyncSession, users: Dict[str, int]) -> None:
    await _roster(db_session)
    await assignment_service.assign_teacher_to_batch(db_session, users["bt"], "X")

    assert await assignment_service.remove_teacher_from_batch(db_session, users["bt"], "X") is True
    assert await assignment_service.remove_teacher_from_batch(db_session, users["bt"], "X") is False
    assert await student_service.list_students_for_role(db_session, users["bt"], Role.BATCH_TEACHER) == []


@pytest.mark.asyncio
async def test_batches_with_counts(db_session: AsyncSession) -> None:
    await _roster(db_session)
    await batch_service.upsert_batch(db_session, "Z", "Empty")

    counts = {b.batch_id: b.student_count for b in await batch_service.list_batches_with_counts(db_session)}
    assert counts == {"X": 2, "Y": 2, "Z": 0}

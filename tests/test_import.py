"""Bulk import: validation, duplicate detection, batch linking and per-row reporting."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.batches import service as batch_service
from app.api.v1.students import service as student_service
from app.api.v1.students.import_service import import_students
from app.api.v1.students.schemas import StudentUpsert
from app.core.exceptions import ServiceError
from app.core.models import Student


@pytest.mark.asyncio
async def test_import_reconciles_rows(db_session: AsyncSession) -> None:
    rows = [
        {"PRN": "1", "Name": "A", "BatchID": "X"},
        {"PRN": "1", "Name": "B"},
        {"PRN": "", "Name": "C"},
    ]

    report = await import_students(db_session, rows)

    assert report.success_count == 1
    assert [(e.row, e.reason) for e in report.errors] == [
        (2, "Duplicate PRN"),
        (3, "Missing PRN or Name"),
    ]
    assert report.batches == {"X"}

    count = (await db_session.execute(select(func.count()).select_from(Student))).scalar_one()
    assert count == 1
    student = await student_service.get_student(db_session, "1")
    assert (student.prn, student.name, student.batch_id) == ("1", "A", "X")


@pytest.mark.asyncio
async def test_import_trims_and_creates_batch_named_after_id(db_session: AsyncSession) -> None:
    rows = [
        {
            "PRN": "  42 ",
            "Name": " Meera ",
            "Email": " m@example.com ",
            "Mobile": "999",
            "ParentMobile": "888",
            "BatchID": " B1 ",
        }
    ]

    report = await import_students(db_session, rows)

    assert report.success_count == 1
    student = await student_service.get_student(db_session, "42")
    assert student.name == "Meera"
    assert student.email == "m@example.com"
    assert student.parent_mobile == "888"
    assert student.batch_id == "B1"
    assert (await batch_service.get_batch(db_session, "B1")).batch_name == "B1"


@pytest.mark.asyncio
async def test_import_skips_prns_already_in_store(db_session: AsyncSession) -> None:
    await student_service.upsert_student(db_session, StudentUpsert(prn="7", name="Existing"))

    report = await import_students(db_session, [{"PRN": "7", "Name": "Newcomer"}, {"PRN": "8", "Name": "Fresh"}])

    assert report.success_count == 1
    assert [(e.row, e.reason) for e in report.errors] == [(1, "Duplicate PRN")]
    assert (await student_service.get_student(db_session, "7")).name == "Existing"


@pytest.mark.asyncio
async def test_import_missing_name_or_keys(db_session: AsyncSession) -> None:
    report = await import_students(db_session, [{"PRN": "1"}, {"Name": "No prn"}, {"PRN": "2", "Name": "   "}, {}])

    assert report.success_count == 0
    assert [e.row for e in report.errors] == [1, 2, 3, 4]
    assert {e.reason for e in report.errors} == {"Missing PRN or Name"}
    assert report.batches == set()


@pytest.mark.asyncio
async def test_import_normalizes_spreadsheet_numbers(db_session: AsyncSession) -> None:
    report = await import_students(db_session, [{"PRN": 1001.0, "Name": "Num", "Mobile": 9876543210, "BatchID": 5}])

    assert report.success_count == 1
    student = await student_service.get_student(db_session, "1001")
    assert student.mobile == "9876543210"
    assert student.batch_id == "5"


@pytest.mark.asyncio
async def test_storage_failure_only_affects_its_row(db_session: AsyncSession, monkeypatch) -> None:
    original = student_service.upsert_student

    async def flaky_upsert(db, payload):
        if payload.prn == "2":
            raise ServiceError("constraint failed", 409)
        return await original(db, payload)

    monkeypatch.setattr(student_service, "upsert_student", flaky_upsert)

    report = await import_students(
        db_session,
        [
            {"PRN": "1", "Name": "A"},
            {"PRN": "2", "Name": "B", "BatchID": "Z"},
            {"PRN": "3", "Name": "C"},
            {"PRN": "2", "Name": "B again"},
        ],
    )

    assert report.success_count == 2
    # Row 4 is retried because row 2 never made it into the store
    assert [(e.row, e.reason) for e in report.errors] == [(2, "Database error"), (4, "Database error")]
    # The batch upsert ran before the failing student upsert and stays committed
    assert report.batches == {"Z"}
    assert await batch_service.get_batch(db_session, "Z") is not None
    assert await student_service.get_student(db_session, "3") is not None


@pytest.mark.asyncio
async def test_reimport_after_fix_succeeds(db_session: AsyncSession) -> None:
    rows = [{"PRN": "1", "Name": "A"}, {"PRN": "", "Name": "B"}]
    first = await import_students(db_session, rows)
    assert first.success_count == 1

    second = await import_students(db_session, [{"PRN": "2", "Name": "B"}])
    assert second.success_count == 1
    assert second.errors == []
    assert await student_service.count_students(db_session) == 2


@pytest.mark.asyncio
async def test_overlong_values_are_reported_per_row(db_session: AsyncSession) -> None:
    report = await import_students(
        db_session,
        [
            {"PRN": "1", "Name": "A"},
            {"PRN": "2", "Name": "N" * 300, "BatchID": "Q"},
            {"PRN": "P" * 101, "Name": "Long prn"},
            {"PRN": "3", "Name": "C"},
        ],
    )

    assert report.success_count == 2
    assert [(e.row, e.reason) for e in report.errors] == [(2, "Invalid Name"), (3, "Invalid PRN")]
    # The rejected row never reached the store, not even its batch
    assert report.batches == set()
    assert await batch_service.get_batch(db_session, "Q") is None
    assert await student_service.get_student(db_session, "2") is None
    assert await student_service.get_student(db_session, "3") is not None
    assert await student_service.count_students(db_session) == 2

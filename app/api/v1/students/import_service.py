"""Bulk student import.

Rows are processed strictly in file order. A bad row is reported and skipped; it never
stops the rows after it. Nothing is wrapped in a transaction: each batch and student
upsert commits on its own, so re-running a fixed file is the recovery path.
"""

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.batches import service as batch_service
from app.core.exceptions import ServiceError

from . import service as student_service
from .schemas import ImportReport, ImportRowError, StudentUpsert

logger = logging.getLogger(__name__)

MISSING_PRN_OR_NAME = "Missing PRN or Name"
DUPLICATE_PRN = "Duplicate PRN"
DATABASE_ERROR = "Database error"
INVALID_VALUE = "Invalid {}"

# StudentUpsert field -> import column
_COLUMN_FOR_FIELD = {
    "prn": "PRN",
    "name": "Name",
    "email": "Email",
    "mobile": "Mobile",
    "parent_mobile": "ParentMobile",
    "batch_id": "BatchID",
}


def _validation_reason(e: ValidationError) -> str:
    """Row error text naming the offending columns, e.g. 'Invalid Name'."""
    columns = []
    for err in e.errors():
        field = err["loc"][0] if err.get("loc") else None
        column = _COLUMN_FOR_FIELD.get(field, str(field) if field is not None else "row")
        if column not in columns:
            columns.append(column)
    return INVALID_VALUE.format(", ".join(columns) or "row")


def _cell_str(row: Mapping[str, Any], key: str) -> str:
    v = row.get(key)
    if v is None:
        return ""
    # Spreadsheet cells holding numbers come back as floats (1001 -> 1001.0)
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()


async def import_students(db: AsyncSession, rows: Iterable[Mapping[str, Any]]) -> ImportReport:
    """Validate, deduplicate and upsert student rows. Returns a per-row report."""
    report = ImportReport()

    # Snapshot taken once; PRNs imported below are added so repeats in the same file are caught
    seen = await student_service.existing_prns(db)
    logger.info("Import started against %d existing students", len(seen))

    for index, row in enumerate(rows, start=1):
        prn = _cell_str(row, "PRN")
        name = _cell_str(row, "Name")
        batch_id = _cell_str(row, "BatchID")

        if not prn or not name:
            report.errors.append(ImportRowError(row=index, reason=MISSING_PRN_OR_NAME))
            continue
        if prn in seen:
            report.errors.append(ImportRowError(row=index, reason=DUPLICATE_PRN))
            continue

        # Validated before any write so a rejected row leaves no batch behind
        try:
            payload = StudentUpsert(
                prn=prn,
                name=name,
                email=_cell_str(row, "Email"),
                mobile=_cell_str(row, "Mobile"),
                parent_mobile=_cell_str(row, "ParentMobile"),
                batch_id=batch_id or None,
            )
        except ValidationError as e:
            reason = _validation_reason(e)
            logger.warning("Import row %d (PRN %.40s) rejected: %s", index, prn, reason)
            report.errors.append(ImportRowError(row=index, reason=reason))
            continue

        try:
            if batch_id:
                # Batch first so the student's foreign key resolves
                await batch_service.upsert_batch(db, batch_id, batch_id)
                report.batches.add(batch_id)

            await student_service.upsert_student(db, payload)
        except (ServiceError, SQLAlchemyError) as e:
            if isinstance(e, SQLAlchemyError):
                await db.rollback()
            logger.warning("Import row %d (PRN %s) failed: %s", index, prn, e)
            report.errors.append(ImportRowError(row=index, reason=DATABASE_ERROR))
            continue

        seen.add(prn)
        report.success_count += 1

    logger.info(
        "Import finished: %d imported, %d errors, %d batches",
        report.success_count,
        len(report.errors),
        len(report.batches),
    )
    return report

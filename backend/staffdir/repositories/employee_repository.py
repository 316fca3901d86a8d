"""
StaffDir Backend: Employee Repository
======================================

What:  CRUD over the employees table.
Who:   Used by EmployeeService.

Writes commit before returning, so CREATED, UPDATED and DELETED are only
reported for changes that are stored. A failed commit is FAILED.

Concurrency:
    No optimistic locking. A replace racing a delete on the same id either
    lands first or matches zero rows and reports NOT_FOUND; nothing crashes.
    Writes to different ids are independent.

Query plans:
    get_by_id / replace / delete_by_id → primary key lookup
    list                              → full scan, store-native order
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.exceptions import DatabaseError
from staffdir.models.employee import Employee
from staffdir.repositories.outcomes import WriteOutcome, WriteResult

logger = logging.getLogger(__name__)


class EmployeeRepository:

    async def create(self, db: AsyncSession, name: str, position: str) -> WriteResult:
        """Insert a row; the returned record carries the assigned id."""
        employee = Employee(name=name, position=position)
        db.add(employee)
        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating employee: %s", str(e), exc_info=True)
            return WriteResult(WriteOutcome.FAILED, error=e)
        return WriteResult(WriteOutcome.CREATED, record=employee)

    async def list(self, db: AsyncSession) -> List[Employee]:
        try:
            result = await db.execute(select(Employee))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing employees: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve employees. Please try again.",
                context={"operation": "employee.list", "error_type": type(e).__name__},
            )

    async def get_by_id(self, db: AsyncSession, employee_id: int) -> Optional[Employee]:
        try:
            result = await db.execute(
                select(Employee)
                .where(Employee.id == employee_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching employee %s: %s", employee_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the employee. Please try again.",
                context={"operation": "employee.get", "employee_id": employee_id},
            )

    async def replace(
        self, db: AsyncSession, employee_id: int, name: str, position: str
    ) -> WriteResult:
        """
        Overwrite both fields of an existing row.

        Row counts are matched rows, so writing identical values still
        reports UPDATED.
        """
        try:
            result = await db.execute(
                update(Employee)
                .where(Employee.id == employee_id)
                .values(name=name, position=position)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating employee %s: %s", employee_id, str(e), exc_info=True)
            return WriteResult(WriteOutcome.FAILED, error=e)

        if result.rowcount == 0:
            return WriteResult(WriteOutcome.NOT_FOUND)

        # Identity map may hold a stale copy loaded earlier in this session.
        return WriteResult(
            WriteOutcome.UPDATED,
            record=Employee(id=employee_id, name=name, position=position),
        )

    async def delete_by_id(self, db: AsyncSession, employee_id: int) -> WriteResult:
        try:
            result = await db.execute(
                delete(Employee)
                .where(Employee.id == employee_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting employee %s: %s", employee_id, str(e), exc_info=True)
            return WriteResult(WriteOutcome.FAILED, error=e)

        if result.rowcount == 0:
            return WriteResult(WriteOutcome.NOT_FOUND)
        return WriteResult(WriteOutcome.DELETED)


employee_repository = EmployeeRepository()

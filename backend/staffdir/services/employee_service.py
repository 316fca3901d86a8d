"""
StaffDir Backend: Employee Service
===================================

What:  Employee CRUD with validation in front of every write.
How:   Validates the raw payload, calls EmployeeRepository and translates
       WriteResult outcomes into NotFoundError / DatabaseError.

A payload that fails validation never reaches the repository, so a rejected
PUT leaves the stored record untouched.
"""

import logging
from typing import Any, List

from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.exceptions import DatabaseError, NotFoundError, ValidationError
from staffdir.repositories.employee_repository import EmployeeRepository, employee_repository
from staffdir.repositories.outcomes import WriteOutcome, WriteResult
from staffdir.schemas.employee import EmployeeIn, EmployeeOut
from staffdir.services.validator import validate

logger = logging.getLogger(__name__)

RESOURCE = "Employee"


def _validated(payload: Any) -> EmployeeIn:
    result = validate("employee", payload)
    if not result.ok:
        raise ValidationError(violations=result.violation_dicts())
    return result.record


def _raise_for_failure(write: WriteResult, employee_id=None) -> None:
    if write.outcome is WriteOutcome.NOT_FOUND:
        raise NotFoundError(resource=RESOURCE, resource_id=employee_id)
    if write.outcome is WriteOutcome.FAILED:
        raise DatabaseError(
            message="Could not save the employee. Please try again.",
            context={"employee_id": employee_id, "error_type": type(write.error).__name__},
        )


class EmployeeService:

    def __init__(self, repository: EmployeeRepository = employee_repository):
        self.repository = repository

    async def create(self, db: AsyncSession, payload: Any) -> EmployeeOut:
        data = _validated(payload)
        write = await self.repository.create(db, data.name, data.position)
        _raise_for_failure(write)
        logger.info("Employee %s created", write.record.id)
        return EmployeeOut.model_validate(write.record)

    async def list(self, db: AsyncSession) -> List[EmployeeOut]:
        employees = await self.repository.list(db)
        return [EmployeeOut.model_validate(e) for e in employees]

    async def get(self, db: AsyncSession, employee_id: int) -> EmployeeOut:
        employee = await self.repository.get_by_id(db, employee_id)
        if employee is None:
            raise NotFoundError(resource=RESOURCE, resource_id=employee_id)
        return EmployeeOut.model_validate(employee)

    async def replace(self, db: AsyncSession, employee_id: int, payload: Any) -> EmployeeOut:
        data = _validated(payload)
        write = await self.repository.replace(db, employee_id, data.name, data.position)
        _raise_for_failure(write, employee_id)
        logger.info("Employee %s replaced", employee_id)
        return EmployeeOut.model_validate(write.record)

    async def delete(self, db: AsyncSession, employee_id: int) -> None:
        write = await self.repository.delete_by_id(db, employee_id)
        _raise_for_failure(write, employee_id)


employee_service = EmployeeService()

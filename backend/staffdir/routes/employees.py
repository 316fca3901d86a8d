"""
StaffDir Backend: Employee Route Handlers
==========================================

What:  CRUD endpoints for employees.

    POST   /employees        bearer  → 201 employee
    GET    /employees        public  → 200 list
    GET    /employees/{id}   public  → 200 employee | 404
    PUT    /employees/{id}   bearer  → 200 employee | 404
    DELETE /employees/{id}   bearer  → 200 message  | 404

Protected handlers list `require_bearer_subject` as their first dependency.
The body is only validated inside the service call, after authentication.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.database import get_db_session
from staffdir.dependencies import read_json_body, require_bearer_subject
from staffdir.schemas.common import ErrorResponse, MessageResponse
from staffdir.schemas.employee import EmployeeOut
from staffdir.services.employee_service import employee_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"])

_AUTH_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
}
_SERVER_ERROR = {500: {"description": "Server error", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Employee not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Validation failed", "model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=EmployeeOut,
    responses={**_INVALID, **_AUTH_ERRORS, **_SERVER_ERROR},
    summary="Create an employee",
)
async def create_employee(
    subject: str = Depends(require_bearer_subject),
    payload: Any = Depends(read_json_body),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeOut:
    return await employee_service.create(db, payload)


@router.get(
    "",
    response_model=List[EmployeeOut],
    responses={**_SERVER_ERROR},
    summary="List all employees",
)
async def list_employees(db: AsyncSession = Depends(get_db_session)) -> List[EmployeeOut]:
    return await employee_service.list(db)


@router.get(
    "/{employee_id}",
    response_model=EmployeeOut,
    responses={**_INVALID, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Get an employee by id",
)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeOut:
    return await employee_service.get(db, employee_id)


@router.put(
    "/{employee_id}",
    response_model=EmployeeOut,
    responses={**_INVALID, **_AUTH_ERRORS, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Replace an employee's name and position",
)
async def replace_employee(
    employee_id: int,
    subject: str = Depends(require_bearer_subject),
    payload: Any = Depends(read_json_body),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeOut:
    return await employee_service.replace(db, employee_id, payload)


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete an employee",
)
async def delete_employee(
    employee_id: int,
    subject: str = Depends(require_bearer_subject),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await employee_service.delete(db, employee_id)
    logger.info("Employee %s deleted by subject %s", employee_id, subject)
    return MessageResponse(message="Employee deleted successfully")

"""
StaffDir Backend: Employee Schemas
===================================

What:  Request body for creating/replacing an employee and the record
       returned by every employee endpoint.

Lengths are checked on the raw value. The upper bound matches the
VARCHAR(255) columns, so an over-long value is a 400, not a failed INSERT. "  " passes the two-character
minimum; trimming is a product decision that has not been made.
"""

from pydantic import BaseModel, Field, field_validator

MIN_FIELD_LENGTH = 2
MAX_FIELD_LENGTH = 255


def _check_length(label: str, value: str) -> str:
    if len(value) < MIN_FIELD_LENGTH:
        raise ValueError(f"{label} must be at least {MIN_FIELD_LENGTH} characters")
    if len(value) > MAX_FIELD_LENGTH:
        raise ValueError(f"{label} must be at most {MAX_FIELD_LENGTH} characters")
    return value


class EmployeeIn(BaseModel):
    """Body of POST /employees and PUT /employees/{id}; both fields required."""

    name: str = Field(description="Full name, 2 to 255 characters")
    position: str = Field(description="Job title, 2 to 255 characters")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_length("Name", v)

    @field_validator("position")
    @classmethod
    def validate_position(cls, v: str) -> str:
        return _check_length("Position", v)


class EmployeeOut(BaseModel):
    id: int = Field(description="Identifier assigned on creation")
    name: str
    position: str

    model_config = {"from_attributes": True}

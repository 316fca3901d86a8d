"""
StaffDir Backend: Schema Validator
===================================

What:  Validates untyped request payloads against a named schema and returns
       a tagged result instead of raising.
How:   pydantic collects every field error in one pass; each error becomes a
       FieldViolation. Nothing short-circuits on the first failure, so the
       400 response can list all of them.

    validate("employee", {"name": "A"})
    → ValidationResult(record=None, violations=(
          FieldViolation("name", "Name must be at least 2 characters"),
          FieldViolation("position", "Position is required"),
      ))

Schemas:
    register  → RegisterRequest (email shape, password ≥ 6)
    login     → LoginRequest    (email shape, password present)
    employee  → EmployeeIn      (name ≥ 2, position ≥ 2)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

import pydantic
from pydantic import BaseModel

from staffdir.schemas.credential import LoginRequest, RegisterRequest
from staffdir.schemas.employee import EmployeeIn

SCHEMAS: Dict[str, Type[BaseModel]] = {
    "register": RegisterRequest,
    "login": LoginRequest,
    "employee": EmployeeIn,
}


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    """Either a normalized `record` or a non-empty tuple of `violations`."""

    record: Optional[BaseModel] = None
    violations: Tuple[FieldViolation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    def violation_dicts(self) -> list:
        return [v.to_dict() for v in self.violations]


def _to_violation(error: Dict[str, Any]) -> FieldViolation:
    field = ".".join(str(part) for part in error.get("loc", ())) or "body"
    error_type = error.get("type")
    if error_type == "missing":
        message = f"{field.capitalize()} is required"
    elif error_type == "value_error" and "error" in error.get("ctx", {}):
        # message of the ValueError raised by a field validator
        message = str(error["ctx"]["error"])
    elif error_type == "string_type":
        message = f"{field.capitalize()} must be a string"
    else:
        message = error.get("msg", "Invalid value")
    return FieldViolation(field=field, message=message)


def validate(schema: str, payload: Any) -> ValidationResult:
    """
    Validate `payload` against the schema registered under `schema`.

    Raises KeyError for an unknown schema name (a programming error, not a
    client error).
    """
    model = SCHEMAS[schema]

    if not isinstance(payload, dict):
        return ValidationResult(
            violations=(FieldViolation("body", "Request body must be a JSON object"),)
        )

    try:
        record = model.model_validate(payload)
    except pydantic.ValidationError as exc:
        return ValidationResult(
            violations=tuple(_to_violation(err) for err in exc.errors())
        )
    return ValidationResult(record=record)

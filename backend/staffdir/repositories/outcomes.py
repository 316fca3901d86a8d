"""
Typed results for repository writes.

Services branch on `outcome` instead of inspecting driver row counts or
exception types.
"""

import enum
from dataclasses import dataclass
from typing import Any, Optional


class WriteOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class WriteResult:
    outcome: WriteOutcome
    record: Optional[Any] = None
    error: Optional[BaseException] = None

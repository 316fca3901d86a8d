"""
StaffDir Backend: Employee SQLAlchemy Model
============================================

What:  ORM model for the `employees` table.
Who:   Read and written only by EmployeeRepository.

Identifiers are assigned by the database, increase monotonically and are
never handed out again after a delete. On SQLite this needs the
AUTOINCREMENT keyword (sqlite_autoincrement), otherwise the highest id is
reused once its row is removed.

Every row satisfies the employee schema (name and position of at least two
characters) because all writes go through the validator first.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from staffdir.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.name}', position='{self.position}')>"

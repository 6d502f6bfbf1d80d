"""
AssetDesk Backend — Employee SQLAlchemy Model
===============================================

What:  Staff records. An employee may be linked to a login account
       (`user_id`); only linked employees can receive notifications.
Who:   Read by SqlDirectory when the dispatcher resolves submitters,
       requesters and asset holders to their linked user.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Employee(Base):
    """
    Represents an employee in the organisation.

    Lifecycle:
        Onboarded (status 'Active') → optionally linked to a user account
        → offboarded (status 'Resigned'/'Terminated', exit_date set).
        An employee with user_id NULL silently receives no notifications.
    """

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Human-facing employee number (e.g. EMP-0042)
    emp_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    english_name: Mapped[str] = mapped_column(String(100), nullable=False)

    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Active",
        server_default=text("'Active'"),
    )

    joining_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    exit_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Linked login account; the notification recipient for this employee
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.english_name}', user_id={self.user_id})>"

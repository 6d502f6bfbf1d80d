"""
AssetDesk Backend — User SQLAlchemy Model
===========================================

What:  Login accounts. The only addressable notification recipients.
Who:   Read by NotificationService (role audiences, broadcast) and by the
       caller-identity dependency (admin checks). Written by the wider
       application, not by this service.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Access levels in ascending order of privilege
USER_ROLES = ("employee", "agent", "manager", "admin")


class User(Base):
    """A login-capable account; employees link to it through `user_id`."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    # Values: employee, agent, manager, admin (see USER_ROLES)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="employee",
        server_default=text("'employee'"),
    )

    # Inactive accounts never receive audience or broadcast notifications
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

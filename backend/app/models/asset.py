"""
AssetDesk Backend — Asset SQLAlchemy Model
============================================

What:  Hardware/software assets that can be checked out to employees.
Who:   Read by SqlDirectory when a maintenance or upgrade notification
       needs the asset's name or current holder.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Asset(Base):
    """An asset; `assigned_employee_id` is the current holder (NULL when in stock)."""

    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Asset tag printed on the device (e.g. AST-00017)
    asset_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    type: Mapped[str] = mapped_column(String(100), nullable=False, default="Laptop")

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Available",
        server_default=text("'Available'"),
    )

    assigned_employee_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="SET NULL"),
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
        return (
            f"<Asset(id={self.id}, tag='{self.asset_id}', "
            f"assigned_employee_id={self.assigned_employee_id})>"
        )

"""
AssetDesk Backend — Directory (Employee/Asset Lookup)
=======================================================

What:  The lookup collaborator the dispatcher uses to resolve ids into
       employees (and their linked user) and assets.
How:   `Directory` is the abstract contract; `SqlDirectory` implements it
       over the application's tables with one primary-key query per call.
Who:   NotificationDispatcher. Tests substitute an in-memory fake.

Contract:
    - A missing row is reported as None, never as an exception.
    - Datastore errors propagate unchanged; the dispatcher's guard logs
      and drops them.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset
from app.models.employee import Employee
from app.schemas.snapshots import AssetSnapshot, EmployeeSnapshot


class Directory(ABC):
    """Abstract id → record resolution for notification routing."""

    @abstractmethod
    async def get_employee(self, employee_id: int) -> Optional[EmployeeSnapshot]:
        """Return the employee with this id, or None if there is none."""
        ...

    @abstractmethod
    async def get_asset(self, asset_id: int) -> Optional[AssetSnapshot]:
        """Return the asset with this primary-key id, or None if there is none."""
        ...


class SqlDirectory(Directory):
    """Directory backed by the `employees` and `assets` tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employee(self, employee_id: int) -> Optional[EmployeeSnapshot]:
        result = await self.session.execute(
            select(Employee).where(Employee.id == employee_id)
        )
        row = result.scalar_one_or_none()
        return EmployeeSnapshot.model_validate(row) if row is not None else None

    async def get_asset(self, asset_id: int) -> Optional[AssetSnapshot]:
        result = await self.session.execute(select(Asset).where(Asset.id == asset_id))
        row = result.scalar_one_or_none()
        return AssetSnapshot.model_validate(row) if row is not None else None

"""
AssetDesk Backend — Entity Snapshots
======================================

What:  Canonical, read-only views of the entities the notification
       dispatcher reasons about.
How:   Every handler normalizes its raw input once, at the boundary:
       dicts with camelCase or snake_case keys, ORM rows, or snapshots
       that were already normalized all become the same shape.
Who:   NotificationDispatcher (inputs), SqlDirectory (lookup results).

Normalization rules:
    - Both spellings of every field are accepted (assigned_to_id / assignedToId).
    - Empty identifiers (None, 0, "") mean "not set".
    - Unknown keys are ignored; snapshots never carry more than the
      dispatcher needs.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_id(value: Any) -> Any:
    """Empty identifiers are normalized to None."""
    if value in (None, "", 0):
        return None
    return value


def _to_date(value: Any) -> Any:
    """Accepts date, datetime or an ISO string; drops the time component."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


class Snapshot(BaseModel):
    """Shared configuration for all snapshots."""

    model_config = ConfigDict(
        from_attributes=True,   # ORM rows are accepted as-is
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Actor(Snapshot):
    """The user who performed the operation that triggered a notification."""

    id: Optional[int] = None
    username: Optional[str] = None


class TicketSnapshot(Snapshot):
    """A ticket as seen by the ticket handler."""

    id: Optional[int] = None
    ticket_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ticket_id", "ticketId")
    )
    title: Optional[str] = Field(default=None, validation_alias=AliasChoices("title", "summary"))
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("assigned_to_id", "assignedToId")
    )
    submitted_by_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("submitted_by_id", "submittedById")
    )

    @field_validator("id", "assigned_to_id", "submitted_by_id", mode="before")
    @classmethod
    def blank_ids(cls, v: Any) -> Any:
        return _blank_id(v)

    @property
    def reference(self) -> str:
        """Display reference: the ticket number, or '#<id>' when unnumbered."""
        return self.ticket_id or f"#{self.id}"

    @property
    def display_title(self) -> str:
        return self.title or "Support Ticket"


class AssetSnapshot(Snapshot):
    """An asset as seen by the asset, maintenance and upgrade handlers."""

    id: Optional[int] = None
    asset_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("asset_id", "assetId")
    )
    name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("name", "model_name", "modelName")
    )
    assigned_employee_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("assigned_employee_id", "assignedEmployeeId"),
    )

    @field_validator("id", "assigned_employee_id", mode="before")
    @classmethod
    def blank_ids(cls, v: Any) -> Any:
        return _blank_id(v)

    @property
    def tag(self) -> str:
        """Asset tag, or 'Asset #<id>' for untagged rows."""
        return self.asset_id or f"Asset #{self.id}"

    @property
    def display_name(self) -> str:
        return self.name or self.tag


class MaintenanceSnapshot(Snapshot):
    """A maintenance record attached to an asset."""

    id: Optional[int] = None
    asset_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("asset_id", "assetId")
    )
    scheduled_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("scheduled_date", "scheduledDate", "date"),
    )
    maintenance_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("maintenance_type", "maintenanceType", "type"),
    )

    @field_validator("id", "asset_id", mode="before")
    @classmethod
    def blank_ids(cls, v: Any) -> Any:
        return _blank_id(v)

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _to_date(v)


class UpgradeSnapshot(Snapshot):
    """An asset upgrade request."""

    id: Optional[int] = None
    asset_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("asset_id", "assetId")
    )
    created_by_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("created_by_id", "createdById")
    )
    title: Optional[str] = None
    estimated_cost: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("estimated_cost", "estimatedCost", "cost"),
    )

    @field_validator("id", "asset_id", "created_by_id", mode="before")
    @classmethod
    def blank_ids(cls, v: Any) -> Any:
        return _blank_id(v)


class EmployeeSnapshot(Snapshot):
    """An employee, with the linked user account used for delivery."""

    id: Optional[int] = None
    english_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("english_name", "englishName", "name"),
    )
    user_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))
    department: Optional[str] = None
    joining_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("joining_date", "joiningDate")
    )
    exit_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("exit_date", "exitDate")
    )

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def blank_ids(cls, v: Any) -> Any:
        return _blank_id(v)

    @field_validator("joining_date", "exit_date", mode="before")
    @classmethod
    def coerce_dates(cls, v: Any) -> Any:
        return _to_date(v)

    @property
    def display_name(self) -> str:
        return self.english_name or "Employee"

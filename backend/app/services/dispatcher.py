"""
AssetDesk Backend — Notification Dispatcher
=============================================

What:  Decides, after an entity write, who is notified and with which template.
How:   One async handler per entity kind. Each handler normalizes its raw
       inputs into snapshots, resolves related records through the
       Directory, and calls the NotificationDelivery zero or more times.
       Every external call goes through `attempt()`; every handler is
       wrapped by `never_raises()`.
Who:   Entity write paths call the handler after their own commit.
When:  Inline, within the request that performed the write. Calls run
       sequentially in the order below.

Decision Table:
    ┌─────────────┬───────────────────┬──────────────────────────────────────┐
    │ Kind        │ Operation         │ Recipient(s) / Template              │
    ├─────────────┼───────────────────┼──────────────────────────────────────┤
    │ ticket      │ create, update    │ new assignee: ticket_urgent or       │
    │             │                   │   ticket_assigned                    │
    │             │ update (status)   │ submitter's user, then assignee:     │
    │             │                   │   ticket_status_changed              │
    │ asset       │ any (assignment)  │ new employee's user: asset_assigned  │
    │             │ check-out/-in     │ assigned employee's user:            │
    │             │                   │   asset_transaction                  │
    │ maintenance │ schedule/complete │ asset's employee's user              │
    │ upgrade     │ request           │ audience (manager, admin)            │
    │             │ decision          │ requester's user: upgrade_decided    │
    │ employee    │ onboard/offboard  │ audience (admin, manager)            │
    └─────────────┴───────────────────┴──────────────────────────────────────┘
"""

import logging
from enum import Enum
from typing import Any, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel

from app.config import settings
from app.services.delivery_base import NotificationDelivery
from app.services.directory import Directory
from app.services.guard import attempt, never_raises
from app.schemas.snapshots import (
    Actor,
    AssetSnapshot,
    EmployeeSnapshot,
    MaintenanceSnapshot,
    TicketSnapshot,
    UpgradeSnapshot,
)
from app.services.templates import Template

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)
E = TypeVar("E", bound=Enum)


class TicketOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class AssetOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    CHECK_OUT = "check-out"
    CHECK_IN = "check-in"


class MaintenanceOperation(str, Enum):
    SCHEDULE = "schedule"
    COMPLETE = "complete"


class UpgradeOperation(str, Enum):
    REQUEST = "request"
    DECISION = "decision"


class EmployeeOperation(str, Enum):
    ONBOARD = "onboard"
    OFFBOARD = "offboard"


UPGRADE_DECISIONS = ("approved", "rejected")


def normalize(model: Type[S], raw: Any) -> Optional[S]:
    """
    Convert a raw record into `model`.

    Accepts an instance of `model`, a mapping with snake_case or camelCase
    keys, or any object with matching attributes (ORM rows). None stays None.
    """
    if raw is None or isinstance(raw, model):
        return raw
    return model.model_validate(raw)


def _parse_operation(enum: Type[E], operation: Any, kind: str) -> Optional[E]:
    try:
        return enum(operation)
    except ValueError:
        logger.warning("Ignoring unknown %s notification operation %r", kind, operation)
        return None


class NotificationDispatcher:
    """
    Per-entity-kind notification handlers.

    Args:
        directory: Resolves employee and asset ids.
        delivery: Persists or sends the notifications.
        urgent_priorities: Ticket priorities that select the urgent
            template. Defaults to settings.urgent_priority_set.
        default_priority: Priority assumed for tickets without one.
    """

    def __init__(
        self,
        directory: Directory,
        delivery: NotificationDelivery,
        urgent_priorities: Optional[Iterable[str]] = None,
        default_priority: Optional[str] = None,
    ):
        self.directory = directory
        self.delivery = delivery
        self.urgent_priorities = frozenset(
            urgent_priorities if urgent_priorities is not None else settings.urgent_priority_set
        )
        self.default_priority = default_priority or settings.default_ticket_priority

    # ── Shared steps ──────────────────────────────────────────────────────

    async def _send(
        self,
        recipient_user_id: int,
        template: Template,
        payload: dict,
        *,
        kind: str,
        entity_id: Any,
    ) -> bool:
        ok, _ = await attempt(
            lambda: self.delivery.notify(recipient_user_id, template, payload),
            step=f"deliver {template.value}",
            kind=kind,
            entity_id=entity_id,
        )
        if ok:
            logger.info(
                "Sent %s notification for %s %s to user %s",
                template.value, kind, entity_id, recipient_user_id,
            )
        return ok

    async def _send_audience(
        self,
        template: Template,
        payload: dict,
        *,
        kind: str,
        entity_id: Any,
    ) -> bool:
        ok, created = await attempt(
            lambda: self.delivery.notify_audience(template, payload),
            step=f"deliver {template.value} to audience",
            kind=kind,
            entity_id=entity_id,
        )
        if ok:
            logger.info(
                "Sent %s notification for %s %s to %s recipients",
                template.value, kind, entity_id, created,
            )
        return ok

    async def _linked_user(
        self, employee_id: Optional[int], *, kind: str, entity_id: Any, step: str
    ) -> Optional[int]:
        """The user id linked to an employee, or None when unresolvable."""
        if not employee_id:
            return None
        ok, employee = await attempt(
            lambda: self.directory.get_employee(employee_id),
            step=step,
            kind=kind,
            entity_id=entity_id,
        )
        if not ok or employee is None:
            return None
        return employee.user_id

    async def _asset(self, asset_id: Optional[int], *, kind: str, entity_id: Any) -> Optional[AssetSnapshot]:
        if not asset_id:
            return None
        ok, asset = await attempt(
            lambda: self.directory.get_asset(asset_id),
            step="lookup asset",
            kind=kind,
            entity_id=entity_id,
        )
        return asset if ok else None

    # ── Tickets ───────────────────────────────────────────────────────────

    @never_raises("ticket")
    async def handle_ticket(
        self,
        operation: Any,
        new_ticket: Any,
        old_ticket: Any = None,
        performed_by: Any = None,
    ) -> None:
        """
        Assignment and status-change notifications for a ticket write.

        - Assignment: new assignee set and different from the old one
          (including none → value). Exactly one notification, to the new
          assignee only; urgent priorities use the urgent template.
        - Status change (update only, old status set and different): the
          submitter's linked user, then the assignee if its id differs from
          the submitter id.
        """
        op = _parse_operation(TicketOperation, operation, "ticket")
        if op is None:
            return
        new = normalize(TicketSnapshot, new_ticket)
        old = normalize(TicketSnapshot, old_ticket)
        actor = normalize(Actor, performed_by)

        new_assigned = new.assigned_to_id
        old_assigned = old.assigned_to_id if old else None
        priority = new.priority or self.default_priority
        base = {
            "ticket_ref": new.reference,
            "ticket_title": new.display_title,
            "entity_id": new.id,
        }

        if new_assigned and new_assigned != old_assigned:
            if priority in self.urgent_priorities:
                await self._send(
                    new_assigned,
                    Template.TICKET_URGENT,
                    {**base, "priority": priority},
                    kind="ticket",
                    entity_id=new.id,
                )
            else:
                await self._send(
                    new_assigned,
                    Template.TICKET_ASSIGNED,
                    {**base, "assigned_by": actor.username if actor else None},
                    kind="ticket",
                    entity_id=new.id,
                )

        old_status = old.status if old else None
        if op is TicketOperation.UPDATE and old_status and new.status != old_status:
            payload = {**base, "old_status": old_status, "new_status": new.status}

            submitter_user = await self._linked_user(
                new.submitted_by_id, kind="ticket", entity_id=new.id, step="lookup submitter"
            )
            if submitter_user:
                await self._send(
                    submitter_user,
                    Template.TICKET_STATUS_CHANGED,
                    payload,
                    kind="ticket",
                    entity_id=new.id,
                )

            # assigned_to_id is a user id and submitted_by_id an employee id;
            # the comparison is kept as-is, so the submitter may hear twice
            if new_assigned and new_assigned != new.submitted_by_id:
                await self._send(
                    new_assigned,
                    Template.TICKET_STATUS_CHANGED,
                    payload,
                    kind="ticket",
                    entity_id=new.id,
                )

    # ── Assets ────────────────────────────────────────────────────────────

    @never_raises("asset")
    async def handle_asset(
        self,
        operation: Any,
        new_asset: Any,
        old_asset: Any = None,
        performed_by: Any = None,
    ) -> None:
        """Assignment and check-out/check-in notifications for an asset write."""
        op = _parse_operation(AssetOperation, operation, "asset")
        if op is None:
            return
        new = normalize(AssetSnapshot, new_asset)
        old = normalize(AssetSnapshot, old_asset)

        new_employee = new.assigned_employee_id
        old_employee = old.assigned_employee_id if old else None

        if new_employee and new_employee != old_employee:
            user_id = await self._linked_user(
                new_employee, kind="asset", entity_id=new.id, step="lookup assignee"
            )
            if user_id:
                await self._send(
                    user_id,
                    Template.ASSET_ASSIGNED,
                    {"asset_name": new.display_name, "asset_tag": new.tag, "entity_id": new.id},
                    kind="asset",
                    entity_id=new.id,
                )

        if op in (AssetOperation.CHECK_OUT, AssetOperation.CHECK_IN) and new_employee:
            user_id = await self._linked_user(
                new_employee, kind="asset", entity_id=new.id, step="lookup holder"
            )
            if user_id:
                await self._send(
                    user_id,
                    Template.ASSET_TRANSACTION,
                    {"asset_name": new.display_name, "direction": op.value, "entity_id": new.id},
                    kind="asset",
                    entity_id=new.id,
                )

    # ── Maintenance ───────────────────────────────────────────────────────

    @never_raises("maintenance")
    async def handle_maintenance(
        self,
        operation: Any,
        maintenance: Any,
        asset: Any = None,
    ) -> None:
        """
        Notify the user holding the maintained asset.

        Stops quietly when the asset, its assigned employee or that
        employee's user cannot be resolved.
        """
        op = _parse_operation(MaintenanceOperation, operation, "maintenance")
        if op is None:
            return
        record = normalize(MaintenanceSnapshot, maintenance)

        asset_data = normalize(AssetSnapshot, asset)
        if asset_data is None:
            asset_data = await self._asset(record.asset_id, kind="maintenance", entity_id=record.id)
        if asset_data is None:
            logger.info("Maintenance %s: asset not found, nothing to notify", record.id)
            return

        if not asset_data.assigned_employee_id:
            logger.info("Maintenance %s: asset %s has no assigned employee", record.id, asset_data.tag)
            return

        user_id = await self._linked_user(
            asset_data.assigned_employee_id,
            kind="maintenance",
            entity_id=record.id,
            step="lookup holder",
        )
        if not user_id:
            logger.info("Maintenance %s: assigned employee has no linked user", record.id)
            return

        payload = {
            "asset_name": asset_data.display_name,
            "maintenance_type": record.maintenance_type,
            "entity_id": record.id,
        }
        if op is MaintenanceOperation.SCHEDULE:
            await self._send(
                user_id,
                Template.MAINTENANCE_SCHEDULED,
                {**payload, "scheduled_date": record.scheduled_date},
                kind="maintenance",
                entity_id=record.id,
            )
        else:
            await self._send(
                user_id,
                Template.MAINTENANCE_COMPLETED,
                payload,
                kind="maintenance",
                entity_id=record.id,
            )

    # ── Upgrades ──────────────────────────────────────────────────────────

    @never_raises("upgrade")
    async def handle_upgrade(
        self,
        operation: Any,
        upgrade: Any,
        decision: Optional[str] = None,
        asset: Any = None,
        performed_by: Any = None,
    ) -> None:
        """Request → managers and admins; decision → the requester."""
        op = _parse_operation(UpgradeOperation, operation, "upgrade")
        if op is None:
            return
        request = normalize(UpgradeSnapshot, upgrade)
        asset_data = normalize(AssetSnapshot, asset)

        if op is UpgradeOperation.REQUEST:
            if asset_data is None:
                asset_data = await self._asset(request.asset_id, kind="upgrade", entity_id=request.id)
            requester = None
            if request.created_by_id:
                ok, employee = await attempt(
                    lambda: self.directory.get_employee(request.created_by_id),
                    step="lookup requester",
                    kind="upgrade",
                    entity_id=request.id,
                )
                requester = employee.display_name if ok and employee else None
            await self._send_audience(
                Template.UPGRADE_REQUESTED,
                {
                    "asset_name": asset_data.display_name if asset_data else (request.title or "Asset"),
                    "requested_by": requester,
                    "estimated_cost": request.estimated_cost,
                    "entity_id": request.id,
                },
                kind="upgrade",
                entity_id=request.id,
            )
            return

        if decision not in UPGRADE_DECISIONS:
            if decision is not None:
                logger.warning("Upgrade %s: ignoring unknown decision %r", request.id, decision)
            return

        user_id = await self._linked_user(
            request.created_by_id, kind="upgrade", entity_id=request.id, step="lookup requester"
        )
        if not user_id:
            return
        if asset_data is None:
            asset_data = await self._asset(request.asset_id, kind="upgrade", entity_id=request.id)
        actor = normalize(Actor, performed_by)
        await self._send(
            user_id,
            Template.UPGRADE_DECIDED,
            {
                "asset_name": asset_data.display_name if asset_data else "Asset",
                "decision": decision,
                "decided_by": actor.username if actor else None,
                "entity_id": request.id,
            },
            kind="upgrade",
            entity_id=request.id,
        )

    # ── Employees ─────────────────────────────────────────────────────────

    @never_raises("employee")
    async def handle_employee(self, operation: Any, employee: Any) -> None:
        """Lifecycle notice to the admin/manager audience."""
        op = _parse_operation(EmployeeOperation, operation, "employee")
        if op is None:
            return
        person = normalize(EmployeeSnapshot, employee)

        if op is EmployeeOperation.ONBOARD:
            template = Template.EMPLOYEE_ONBOARDING
            payload = {
                "employee_name": person.display_name,
                "department": person.department,
                "start_date": person.joining_date,
                "entity_id": person.id,
            }
        else:
            template = Template.EMPLOYEE_OFFBOARDING
            payload = {
                "employee_name": person.display_name,
                "last_day": person.exit_date,
                "entity_id": person.id,
            }
        await self._send_audience(template, payload, kind="employee", entity_id=person.id)

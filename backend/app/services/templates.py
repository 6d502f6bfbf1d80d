"""
AssetDesk Backend — Notification Template Catalog
===================================================

What:  The fixed set of notification messages the system can send, with
       the metadata the delivery service needs to route and gate them.
How:   Each Template key maps to a TemplateSpec: notification type,
       category, priority, the preference flag that can mute it, an
       optional default audience, and a renderer turning the payload
       dict into (title, message).
Who:   NotificationDispatcher picks the key and builds the payload;
       NotificationService renders it and applies preferences.

Payload keys (optional ones marked ?):
    ticket_assigned        ticket_ref, ticket_title, assigned_by?
    ticket_urgent          ticket_ref, ticket_title, priority
    ticket_status_changed  ticket_ref, ticket_title, old_status, new_status
    asset_assigned         asset_name, asset_tag?
    asset_transaction      asset_name, direction ('check-out' | 'check-in')
    maintenance_scheduled  asset_name, scheduled_date?, maintenance_type?
    maintenance_completed  asset_name, maintenance_type?
    upgrade_requested      asset_name, requested_by?, estimated_cost?
    upgrade_decided        asset_name, decision ('approved' | 'rejected'), decided_by?
    employee_onboarding    employee_name, department?, start_date?
    employee_offboarding   employee_name, last_day?
    system_announcement    title, message
    Every payload may carry entity_id, copied onto the notification row.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from app.exceptions import ValidationError


class Template(str, Enum):
    TICKET_ASSIGNED = "ticket_assigned"
    TICKET_URGENT = "ticket_urgent"
    TICKET_STATUS_CHANGED = "ticket_status_changed"
    ASSET_ASSIGNED = "asset_assigned"
    ASSET_TRANSACTION = "asset_transaction"
    MAINTENANCE_SCHEDULED = "maintenance_scheduled"
    MAINTENANCE_COMPLETED = "maintenance_completed"
    UPGRADE_REQUESTED = "upgrade_requested"
    UPGRADE_DECIDED = "upgrade_decided"
    EMPLOYEE_ONBOARDING = "employee_onboarding"
    EMPLOYEE_OFFBOARDING = "employee_offboarding"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


Renderer = Callable[[Mapping[str, Any]], Tuple[str, str]]


@dataclass(frozen=True)
class TemplateSpec:
    key: Template
    type: str
    category: str
    priority: str
    preference: str
    render: Renderer
    # Roles notified by notify_audience(); empty means no role audience
    audience_roles: Tuple[str, ...] = ()
    # notify_audience() reaches every active user
    audience_all: bool = False


@dataclass(frozen=True)
class RenderedNotification:
    """Everything needed to insert a notification row, minus the recipient."""

    template: Template
    title: str
    message: str
    type: str
    category: str
    priority: str
    entity_id: Optional[int]


def _fmt_date(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# ── Renderers ─────────────────────────────────────────────────────────────

def _ticket_assigned(p: Mapping[str, Any]) -> Tuple[str, str]:
    ref, title = p["ticket_ref"], p["ticket_title"]
    by = p.get("assigned_by")
    message = (
        f"{by} assigned you ticket {ref}: {title}"
        if by
        else f"You have been assigned ticket {ref}: {title}"
    )
    return f"Ticket {ref} Assigned to You", message


def _ticket_urgent(p: Mapping[str, Any]) -> Tuple[str, str]:
    return (
        f"Urgent: Ticket {p['ticket_ref']} Assigned",
        f"HIGH PRIORITY ({p['priority']}): {p['ticket_title']} - Please address immediately",
    )


def _ticket_status_changed(p: Mapping[str, Any]) -> Tuple[str, str]:
    return (
        f"Ticket {p['ticket_ref']} Status Updated",
        f'Ticket "{p["ticket_title"]}" status changed from {p["old_status"]} to {p["new_status"]}',
    )


def _asset_assigned(p: Mapping[str, Any]) -> Tuple[str, str]:
    name, tag = p["asset_name"], p.get("asset_tag")
    display = f"{name} ({tag})" if tag and tag != name else name
    return "New Asset Assigned to You", f'Asset "{display}" has been assigned to you'


def _asset_transaction(p: Mapping[str, Any]) -> Tuple[str, str]:
    direction = p["direction"]
    if direction == "check-out":
        label, action = "Check-Out", "checked out to you"
    elif direction == "check-in":
        label, action = "Check-In", "returned"
    else:
        raise KeyError(f"direction={direction!r}")
    return f"Asset {label}", f'Asset "{p["asset_name"]}" has been {action}'


def _maintenance_scheduled(p: Mapping[str, Any]) -> Tuple[str, str]:
    kind = p.get("maintenance_type")
    lead = f"{kind} maintenance" if kind else "Maintenance"
    when = p.get("scheduled_date")
    suffix = f" on {_fmt_date(when)}" if when else ""
    return (
        "Maintenance Scheduled on Your Asset",
        f'{lead} scheduled for "{p["asset_name"]}"{suffix}',
    )


def _maintenance_completed(p: Mapping[str, Any]) -> Tuple[str, str]:
    kind = p.get("maintenance_type")
    lead = f"{kind} maintenance" if kind else "Maintenance"
    return "Maintenance Completed", f'{lead} completed for your asset "{p["asset_name"]}"'


def _upgrade_requested(p: Mapping[str, Any]) -> Tuple[str, str]:
    who = p.get("requested_by") or "An employee"
    cost = p.get("estimated_cost")
    cost_str = f" (Est. Cost: ${float(cost):.2f})" if cost else ""
    return (
        "Asset Upgrade Request Pending Approval",
        f'{who} requested an upgrade for "{p["asset_name"]}"{cost_str}',
    )


def _upgrade_decided(p: Mapping[str, Any]) -> Tuple[str, str]:
    decision = p["decision"]
    if decision not in ("approved", "rejected"):
        raise KeyError(f"decision={decision!r}")
    by = p.get("decided_by")
    by_str = f" by {by}" if by else ""
    return (
        f"Upgrade Request {decision.capitalize()}",
        f'Your upgrade request for "{p["asset_name"]}" was {decision}{by_str}',
    )


def _employee_onboarding(p: Mapping[str, Any]) -> Tuple[str, str]:
    dept = p.get("department")
    start = p.get("start_date")
    where = f" {dept}" if dept else ""
    when = f" on {_fmt_date(start)}" if start else ""
    return (
        "New Employee Onboarding",
        f"{p['employee_name']} joining{where}{when}. Please prepare onboarding checklist.",
    )


def _employee_offboarding(p: Mapping[str, Any]) -> Tuple[str, str]:
    last_day = p.get("last_day")
    when = f" on {_fmt_date(last_day)}" if last_day else ""
    return (
        "Employee Offboarding Required",
        f"{p['employee_name']} leaving{when}. "
        "Please initiate asset recovery and offboarding process.",
    )


def _system_announcement(p: Mapping[str, Any]) -> Tuple[str, str]:
    return p["title"], p["message"]


# ── Catalog ───────────────────────────────────────────────────────────────

CATALOG: Dict[Template, TemplateSpec] = {
    spec.key: spec
    for spec in (
        TemplateSpec(Template.TICKET_ASSIGNED, "Ticket", "assignments", "high",
                     "ticket_assignments", _ticket_assigned),
        TemplateSpec(Template.TICKET_URGENT, "Ticket", "assignments", "critical",
                     "ticket_assignments", _ticket_urgent),
        TemplateSpec(Template.TICKET_STATUS_CHANGED, "Ticket", "status_changes", "medium",
                     "ticket_status_changes", _ticket_status_changed),
        TemplateSpec(Template.ASSET_ASSIGNED, "Asset", "assignments", "medium",
                     "asset_assignments", _asset_assigned),
        TemplateSpec(Template.ASSET_TRANSACTION, "Asset", "assignments", "medium",
                     "asset_assignments", _asset_transaction),
        TemplateSpec(Template.MAINTENANCE_SCHEDULED, "Asset", "maintenance", "medium",
                     "maintenance_alerts", _maintenance_scheduled),
        TemplateSpec(Template.MAINTENANCE_COMPLETED, "Asset", "maintenance", "low",
                     "maintenance_alerts", _maintenance_completed),
        TemplateSpec(Template.UPGRADE_REQUESTED, "Asset", "approvals", "medium",
                     "upgrade_requests", _upgrade_requested,
                     audience_roles=("manager", "admin")),
        TemplateSpec(Template.UPGRADE_DECIDED, "Asset", "approvals", "medium",
                     "upgrade_requests", _upgrade_decided),
        TemplateSpec(Template.EMPLOYEE_ONBOARDING, "Employee", "alerts", "medium",
                     "employee_changes", _employee_onboarding,
                     audience_roles=("admin", "manager")),
        TemplateSpec(Template.EMPLOYEE_OFFBOARDING, "Employee", "alerts", "high",
                     "employee_changes", _employee_offboarding,
                     audience_roles=("admin", "manager")),
        TemplateSpec(Template.SYSTEM_ANNOUNCEMENT, "System", "announcements", "info",
                     "system_announcements", _system_announcement,
                     audience_all=True),
    )
}


def get_spec(template: Any) -> TemplateSpec:
    """Look up a template by enum member or key string."""
    try:
        return CATALOG[Template(template)]
    except ValueError:
        raise ValidationError(
            message=f"Unknown notification template '{template}'",
            field="template",
        )


def render(template: Any, payload: Mapping[str, Any]) -> RenderedNotification:
    """
    Render a template with its payload.

    Raises:
        ValidationError: unknown template, or the payload is missing a
            required key / carries an invalid direction or decision.
    """
    spec = get_spec(template)
    try:
        title, message = spec.render(payload)
    except KeyError as e:
        raise ValidationError(
            message=f"Payload for template '{spec.key.value}' is incomplete or invalid: {e}",
            field="payload",
            context={"template": spec.key.value},
        )
    return RenderedNotification(
        template=spec.key,
        title=title[:255],
        message=message,
        type=spec.type,
        category=spec.category,
        priority=spec.priority,
        entity_id=payload.get("entity_id"),
    )

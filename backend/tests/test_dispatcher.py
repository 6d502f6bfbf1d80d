"""
AssetDesk Backend — Notification Dispatcher Unit Tests
========================================================

What:  Routing rules of the five entity handlers.
How:   FakeDirectory + RecordingDelivery (see conftest.py); no database.

What we test:
    ✅ Ticket assignment: one notification to the new assignee, urgent variant
    ✅ Ticket status change: submitter's user then assignee, duplicates kept
    ✅ Asset assignment and check-out / check-in
    ✅ Maintenance resolution chain stops quietly on any gap
    ✅ Upgrade request audience and decision to the requester
    ✅ Employee onboarding / offboarding audience
    ✅ Failing lookups or deliveries never propagate and are logged
"""

import logging
from datetime import date
from types import SimpleNamespace

import pytest

from app.services.templates import Template


# ── Tickets ───────────────────────────────────────────────────────────────

class TestTicketAssignment:

    @pytest.mark.asyncio
    async def test_urgent_assignment_example(self, dispatcher, delivery, fake_directory):
        """Ticket 42 assigned to user 7 at High priority: one urgent notice, no status notice."""
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        old = {"id": 42, "status": "Open", "assignedToId": None, "submittedById": 3}
        new = {"id": 42, "status": "Open", "assignedToId": 7, "priority": "High", "submittedById": 3}

        await dispatcher.handle_ticket("update", new, old)

        assert len(delivery.sent) == 1
        recipient, template, payload = delivery.sent[0]
        assert recipient == 7
        assert template is Template.TICKET_URGENT
        assert payload["priority"] == "High"
        assert payload["ticket_ref"] == "#42"
        assert payload["entity_id"] == 42

    @pytest.mark.asyncio
    async def test_reassignment_notifies_new_assignee_only(self, dispatcher, delivery):
        old = {"id": 5, "ticket_id": "TKT-005", "status": "Open", "assigned_to_id": 3}
        new = {"id": 5, "ticket_id": "TKT-005", "status": "Open", "assigned_to_id": 7,
               "priority": "Low"}

        await dispatcher.handle_ticket("update", new, old, performed_by={"id": 1, "username": "admin"})

        assert delivery.recipients() == [7]
        _, template, payload = delivery.sent[0]
        assert template is Template.TICKET_ASSIGNED
        assert payload["assigned_by"] == "admin"
        assert payload["ticket_ref"] == "TKT-005"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("priority", ["Critical", "High", "Urgent"])
    async def test_urgent_priorities_use_urgent_template(self, dispatcher, delivery, priority):
        await dispatcher.handle_ticket("create", {"id": 1, "assignedToId": 7, "priority": priority})

        assert [t for _, t, _ in delivery.sent] == [Template.TICKET_URGENT]

    @pytest.mark.asyncio
    async def test_missing_priority_defaults_to_generic(self, dispatcher, delivery):
        await dispatcher.handle_ticket("create", {"id": 1, "assignedToId": 7})

        assert [t for _, t, _ in delivery.sent] == [Template.TICKET_ASSIGNED]

    @pytest.mark.asyncio
    async def test_unchanged_assignee_sends_nothing(self, dispatcher, delivery):
        ticket = {"id": 1, "status": "Open", "assignedToId": 7}

        await dispatcher.handle_ticket("update", ticket, dict(ticket))

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_unassignment_sends_nothing(self, dispatcher, delivery):
        await dispatcher.handle_ticket(
            "update", {"id": 1, "assignedToId": None}, {"id": 1, "assignedToId": 7}
        )

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_orm_row_and_snake_case_accepted(self, dispatcher, delivery):
        row = SimpleNamespace(
            id=8, ticket_id="TKT-008", title="Printer jam", status="Open",
            priority="Medium", assigned_to_id=7, submitted_by_id=None,
        )

        await dispatcher.handle_ticket("create", row)

        _, template, payload = delivery.sent[0]
        assert template is Template.TICKET_ASSIGNED
        assert payload["ticket_title"] == "Printer jam"


class TestTicketStatusChange:

    @pytest.mark.asyncio
    async def test_submitter_and_assignee_both_notified(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        old = {"id": 9, "status": "Open", "assignedToId": 7, "submittedById": 3}
        new = {"id": 9, "status": "Resolved", "assignedToId": 7, "submittedById": 3}

        await dispatcher.handle_ticket("update", new, old)

        assert delivery.recipients(Template.TICKET_STATUS_CHANGED) == [30, 7]
        payload = delivery.sent[0][2]
        assert payload["old_status"] == "Open"
        assert payload["new_status"] == "Resolved"

    @pytest.mark.asyncio
    async def test_same_user_receives_duplicate(self, dispatcher, delivery, fake_directory):
        """Submitter's linked user is also the assignee: both messages are sent."""
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        old = {"id": 9, "status": "Open", "assignedToId": 30, "submittedById": 3}
        new = {"id": 9, "status": "In Progress", "assignedToId": 30, "submittedById": 3}

        await dispatcher.handle_ticket("update", new, old)

        assert delivery.recipients(Template.TICKET_STATUS_CHANGED) == [30, 30]

    @pytest.mark.asyncio
    async def test_assignee_skipped_when_raw_ids_match(self, dispatcher, delivery, fake_directory):
        """The second notice compares assignee user id with submitter employee id."""
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        old = {"id": 9, "status": "Open", "assignedToId": 3, "submittedById": 3}
        new = {"id": 9, "status": "Closed", "assignedToId": 3, "submittedById": 3}

        await dispatcher.handle_ticket("update", new, old)

        assert delivery.recipients(Template.TICKET_STATUS_CHANGED) == [30]

    @pytest.mark.asyncio
    async def test_create_never_sends_status_change(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        old = {"id": 9, "status": "Open", "submittedById": 3}
        new = {"id": 9, "status": "Closed", "submittedById": 3}

        await dispatcher.handle_ticket("create", new, old)

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_no_old_status_sends_nothing(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_ticket(
            "update", {"id": 9, "status": "Closed", "submittedById": 3}, {"id": 9, "status": None}
        )

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_submitter_without_user_is_skipped(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(5, "No Account", user_id=None)
        old = {"id": 9, "status": "Open", "assignedToId": 7, "submittedById": 5}
        new = {"id": 9, "status": "Closed", "assignedToId": 7, "submittedById": 5}

        await dispatcher.handle_ticket("update", new, old)

        assert delivery.recipients(Template.TICKET_STATUS_CHANGED) == [7]

    @pytest.mark.asyncio
    async def test_failed_submitter_lookup_still_notifies_assignee(
        self, dispatcher, delivery, fake_directory, caplog
    ):
        fake_directory.fail_on.add("employee")
        old = {"id": 9, "status": "Open", "assignedToId": 7, "submittedById": 3}
        new = {"id": 9, "status": "Closed", "assignedToId": 7, "submittedById": 3}

        with caplog.at_level(logging.ERROR):
            await dispatcher.handle_ticket("update", new, old)

        assert delivery.recipients(Template.TICKET_STATUS_CHANGED) == [7]
        assert "lookup submitter" in caplog.text


# ── Assets ────────────────────────────────────────────────────────────────

class TestAssetHandler:

    @pytest.mark.asyncio
    async def test_assignment_notifies_linked_user(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        new = {"id": 1, "assetId": "AST-0001", "name": "ThinkPad X1", "assignedEmployeeId": 3}

        await dispatcher.handle_asset("update", new, {"id": 1, "assignedEmployeeId": None})

        assert delivery.sent == [
            (30, Template.ASSET_ASSIGNED,
             {"asset_name": "ThinkPad X1", "asset_tag": "AST-0001", "entity_id": 1}),
        ]

    @pytest.mark.asyncio
    async def test_assignment_to_employee_without_user(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(5, "No Account", user_id=None)

        await dispatcher.handle_asset("update", {"id": 1, "assigned_employee_id": 5})

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_check_out_sends_assignment_and_transaction(
        self, dispatcher, delivery, fake_directory
    ):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_asset(
            "check-out",
            {"id": 1, "name": "ThinkPad X1", "assignedEmployeeId": 3},
            {"id": 1, "assignedEmployeeId": None},
        )

        assert [t for _, t, _ in delivery.sent] == [
            Template.ASSET_ASSIGNED,
            Template.ASSET_TRANSACTION,
        ]
        assert delivery.sent[1][2]["direction"] == "check-out"

    @pytest.mark.asyncio
    async def test_check_in_direction(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        asset = {"id": 1, "name": "ThinkPad X1", "assignedEmployeeId": 3}

        await dispatcher.handle_asset("check-in", asset, dict(asset))

        assert delivery.sent == [
            (30, Template.ASSET_TRANSACTION,
             {"asset_name": "ThinkPad X1", "direction": "check-in", "entity_id": 1}),
        ]

    @pytest.mark.asyncio
    async def test_check_out_without_employee_sends_nothing(self, dispatcher, delivery, fake_directory):
        await dispatcher.handle_asset("check-out", {"id": 2, "name": "Dell Monitor"})

        assert delivery.sent == []
        assert fake_directory.calls == []

    @pytest.mark.asyncio
    async def test_untagged_asset_display(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_asset("create", {"id": 11, "assignedEmployeeId": 3})

        payload = delivery.sent[0][2]
        assert payload["asset_tag"] == "Asset #11"
        assert payload["asset_name"] == "Asset #11"


# ── Maintenance ───────────────────────────────────────────────────────────

class TestMaintenanceHandler:

    @pytest.mark.asyncio
    async def test_schedule_looks_up_asset(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        fake_directory.add_asset(1, "AST-0001", "ThinkPad X1", assigned_employee_id=3)

        await dispatcher.handle_maintenance(
            "schedule",
            {"id": 77, "assetId": 1, "scheduledDate": "2026-11-02", "type": "Preventive"},
        )

        assert delivery.sent == [
            (30, Template.MAINTENANCE_SCHEDULED, {
                "asset_name": "ThinkPad X1",
                "maintenance_type": "Preventive",
                "entity_id": 77,
                "scheduled_date": date(2026, 11, 2),
            }),
        ]

    @pytest.mark.asyncio
    async def test_complete_with_supplied_asset(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_maintenance(
            "complete",
            {"id": 77, "asset_id": 1},
            asset={"id": 1, "name": "ThinkPad X1", "assigned_employee_id": 3},
        )

        assert [t for _, t, _ in delivery.sent] == [Template.MAINTENANCE_COMPLETED]
        assert ("asset", 1) not in fake_directory.calls

    @pytest.mark.asyncio
    async def test_unassigned_asset_sends_nothing(self, dispatcher, delivery, fake_directory):
        fake_directory.add_asset(2, "AST-0002", "Dell Monitor")

        await dispatcher.handle_maintenance("schedule", {"id": 78, "assetId": 2})

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_missing_asset_sends_nothing(self, dispatcher, delivery):
        await dispatcher.handle_maintenance("schedule", {"id": 78, "assetId": 404})

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_employee_without_user_sends_nothing(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(5, "No Account")
        fake_directory.add_asset(3, "AST-0003", "iPad", assigned_employee_id=5)

        await dispatcher.handle_maintenance("complete", {"id": 79, "assetId": 3})

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_failing_asset_lookup_is_logged(self, dispatcher, delivery, fake_directory, caplog):
        fake_directory.fail_on.add("asset")

        with caplog.at_level(logging.ERROR):
            result = await dispatcher.handle_maintenance("schedule", {"id": 80, "assetId": 1})

        assert result is None
        assert delivery.sent == []
        assert "lookup asset" in caplog.text


# ── Upgrades ──────────────────────────────────────────────────────────────

class TestUpgradeHandler:

    @pytest.mark.asyncio
    async def test_request_goes_to_audience(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)
        fake_directory.add_asset(1, "AST-0001", "ThinkPad X1", assigned_employee_id=3)

        await dispatcher.handle_upgrade(
            "request", {"id": 12, "assetId": 1, "createdById": 3, "estimatedCost": 250}
        )

        assert delivery.sent == []
        assert delivery.audience == [
            (Template.UPGRADE_REQUESTED, {
                "asset_name": "ThinkPad X1",
                "requested_by": "Li Wei",
                "estimated_cost": 250.0,
                "entity_id": 12,
            }),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("decision", ["approved", "rejected"])
    async def test_decision_notifies_requester(self, dispatcher, delivery, fake_directory, decision):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_upgrade(
            "decision",
            {"id": 12, "asset_id": 1, "created_by_id": 3},
            decision=decision,
            asset={"id": 1, "name": "ThinkPad X1"},
            performed_by={"id": 2, "username": "maria"},
        )

        assert delivery.sent == [
            (30, Template.UPGRADE_DECIDED, {
                "asset_name": "ThinkPad X1",
                "decision": decision,
                "decided_by": "maria",
                "entity_id": 12,
            }),
        ]

    @pytest.mark.asyncio
    async def test_decision_with_unknown_asset_names_asset(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_upgrade("decision", {"id": 12, "createdById": 3}, decision="approved")

        assert delivery.sent[0][2]["asset_name"] == "Asset"

    @pytest.mark.asyncio
    async def test_decision_without_value_sends_nothing(self, dispatcher, delivery, fake_directory):
        fake_directory.add_employee(3, "Li Wei", user_id=30)

        await dispatcher.handle_upgrade("decision", {"id": 12, "createdById": 3})

        assert delivery.sent == []
        assert fake_directory.calls == []


# ── Employees ─────────────────────────────────────────────────────────────

class TestEmployeeHandler:

    @pytest.mark.asyncio
    async def test_onboard(self, dispatcher, delivery):
        await dispatcher.handle_employee(
            "onboard",
            {"id": 21, "englishName": "Ana Souza", "department": "IT", "joiningDate": "2026-11-01"},
        )

        assert delivery.audience == [
            (Template.EMPLOYEE_ONBOARDING, {
                "employee_name": "Ana Souza",
                "department": "IT",
                "start_date": date(2026, 11, 1),
                "entity_id": 21,
            }),
        ]

    @pytest.mark.asyncio
    async def test_offboard_defaults_name(self, dispatcher, delivery):
        await dispatcher.handle_employee("offboard", {"id": 22})

        template, payload = delivery.audience[0]
        assert template is Template.EMPLOYEE_OFFBOARDING
        assert payload["employee_name"] == "Employee"


# ── Failure policy ────────────────────────────────────────────────────────

class TestNeverRaises:

    @pytest.mark.asyncio
    async def test_failing_delivery_is_swallowed(self, dispatcher, delivery, caplog):
        delivery.fail = True

        with caplog.at_level(logging.ERROR):
            result = await dispatcher.handle_ticket("create", {"id": 1, "assignedToId": 7})

        assert result is None
        assert "deliver ticket_assigned" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_audience_delivery_is_swallowed(self, dispatcher, delivery):
        delivery.fail = True

        assert await dispatcher.handle_employee("onboard", {"id": 1, "name": "Ana"}) is None

    @pytest.mark.asyncio
    async def test_failing_lookup_in_every_handler(self, dispatcher, delivery, fake_directory):
        fake_directory.fail_on.update({"employee", "asset"})

        await dispatcher.handle_asset("check-out", {"id": 1, "assignedEmployeeId": 3})
        await dispatcher.handle_maintenance("schedule", {"id": 2, "assetId": 1})
        await dispatcher.handle_upgrade("decision", {"id": 3, "createdById": 3}, decision="approved")

        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_malformed_snapshot_is_swallowed(self, dispatcher, delivery, caplog):
        with caplog.at_level(logging.ERROR):
            await dispatcher.handle_ticket("create", {"id": 1, "assignedToId": "not-a-number"})

        assert delivery.sent == []
        assert "Failed to process ticket notification" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_operation_is_ignored(self, dispatcher, delivery, caplog):
        with caplog.at_level(logging.WARNING):
            await dispatcher.handle_asset("teleport", {"id": 1, "assignedEmployeeId": 3})

        assert delivery.sent == []
        assert "unknown asset notification operation" in caplog.text

"""Create notification schema

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates users, employees and assets (the lookup tables the dispatcher
       reads) plus notifications and notification_preferences.

Rollback: downgrade() drops all five tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100), nullable=False),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'employee'"),
            comment="employee, agent, manager or admin",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("emp_id", sa.String(20), nullable=False),
        sa.Column("english_name", sa.String(100), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Active'")),
        sa.Column("joining_date", sa.Date(), nullable=True),
        sa.Column("exit_date", sa.Date(), nullable=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            nullable=True,
            comment="Linked login account; notification recipient for this employee",
        ),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("emp_id"),
    )
    op.create_index("ix_employees_user_id", "employees", ["user_id"])

    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.String(20), nullable=False, comment="Asset tag"),
        sa.Column("name", sa.String(150), nullable=True),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default=sa.text("'Available'")),
        sa.Column("assigned_employee_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["assigned_employee_id"], ["employees.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("asset_id"),
    )
    op.create_index("ix_assets_assigned_employee_id", "assets", ["assigned_employee_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, comment="Asset, Ticket, System or Employee"),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("category", sa.String(30), nullable=False, server_default=sa.text("'alerts'")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("snoozed_until", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    # Serves "my newest notifications" and the unread badge
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("ticket_assignments", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("ticket_status_changes", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("asset_assignments", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("maintenance_alerts", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("upgrade_requests", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("system_announcements", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("employee_changes", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("dnd_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("dnd_start_time", sa.String(5), nullable=True, comment="HH:MM"),
        sa.Column("dnd_end_time", sa.String(5), nullable=True, comment="HH:MM"),
        sa.Column(
            "dnd_days",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'[]'"),
            comment="0 = Sunday … 6 = Saturday; empty means every day",
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_index("idx_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_assets_assigned_employee_id", table_name="assets")
    op.drop_table("assets")
    op.drop_index("ix_employees_user_id", table_name="employees")
    op.drop_table("employees")
    op.drop_table("users")

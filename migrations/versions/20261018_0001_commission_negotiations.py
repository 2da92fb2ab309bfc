"""commission negotiation schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_SUBJECT_PREDICATE = "status IN ('pending', 'negotiating', 'accepted') AND is_active"


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("commission_status", sa.String(length=32), nullable=False, server_default="none"),
        sa.Column("final_commission_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("commission_negotiation_id", sa.Integer(), nullable=True),
        sa.Column("commission_valid_until", sa.DateTime(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_services_manager_id", "services", ["manager_id"])

    op.create_table(
        "negotiations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), nullable=True),
        sa.Column("subject_key", sa.String(length=64), nullable=False),
        sa.Column("offered_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("counter_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("final_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("offer_type", sa.String(length=32), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("admin_responded_by", sa.Integer(), nullable=True),
        sa.Column("admin_responded_at", sa.DateTime(), nullable=True),
        sa.Column("manager_response", sa.String(length=16), nullable=True),
        sa.Column("manager_notes", sa.Text(), nullable=True),
        sa.Column("manager_responded_at", sa.DateTime(), nullable=True),
        sa.Column("agreed_at", sa.DateTime(), nullable=True),
        sa.Column("agreed_by", sa.Integer(), nullable=True),
        sa.Column("valid_from", sa.DateTime(), nullable=True),
        sa.Column("valid_until", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("min_order_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("max_order_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "offered_percentage >= 0 AND offered_percentage <= 100",
            name="ck_negotiations_offered_range",
        ),
    )
    op.create_index("ix_negotiations_manager_id", "negotiations", ["manager_id"])
    op.create_index("ix_negotiations_service_id", "negotiations", ["service_id"])
    op.create_index(
        "idx_negotiations_manager_service_active",
        "negotiations",
        ["manager_id", "service_id", "is_active"],
    )
    op.create_index("idx_negotiations_status_created", "negotiations", ["status", "created_at"])
    op.create_index("idx_negotiations_validity", "negotiations", ["valid_from", "valid_until"])
    op.create_index(
        "uq_negotiations_active_subject",
        "negotiations",
        ["subject_key"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_SUBJECT_PREDICATE),
        postgresql_where=sa.text(ACTIVE_SUBJECT_PREDICATE),
    )

    op.create_table(
        "negotiation_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("negotiation_id", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.Integer(), nullable=False),
        sa.Column("actor_role", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["negotiation_id"], ["negotiations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("negotiation_id", "sequence", name="uq_negotiation_history_sequence"),
    )
    op.create_index("ix_negotiation_history_negotiation_id", "negotiation_history", ["negotiation_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("net_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("commission_status", sa.String(length=32), nullable=True),
        sa.Column("commission_negotiation_id", sa.Integer(), nullable=True),
        sa.Column("settled_at", sa.DateTime(), nullable=True),
        sa.Column("commission_paid_at", sa.DateTime(), nullable=True),
        sa.Column("commission_paid_by", sa.Integer(), nullable=True),
        sa.Column("commission_notes", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_orders_service_commission_status", "orders", ["service_id", "commission_status"])


def downgrade() -> None:
    op.drop_index("idx_orders_service_commission_status", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_negotiation_history_negotiation_id", table_name="negotiation_history")
    op.drop_table("negotiation_history")
    op.drop_index("uq_negotiations_active_subject", table_name="negotiations")
    op.drop_index("idx_negotiations_validity", table_name="negotiations")
    op.drop_index("idx_negotiations_status_created", table_name="negotiations")
    op.drop_index("idx_negotiations_manager_service_active", table_name="negotiations")
    op.drop_index("ix_negotiations_service_id", table_name="negotiations")
    op.drop_index("ix_negotiations_manager_id", table_name="negotiations")
    op.drop_table("negotiations")
    op.drop_index("ix_services_manager_id", table_name="services")
    op.drop_table("services")

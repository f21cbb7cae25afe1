"""Commission engine schema

Revision ID: 001_commission_engine_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = "001_commission_engine_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return table in insp.get_table_names()


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create org, pay plan, commission and activity tables."""

    if not _table_exists("roles"):
        op.create_table(
            "roles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.UniqueConstraint("name", name="uq_roles_name"),
        )

    if not _table_exists("people"):
        op.create_table(
            "people",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("first_name", sa.String(100), nullable=False),
            sa.Column("last_name", sa.String(100), nullable=False),
            sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=True),
            sa.Column("office_id", sa.Integer(), nullable=True),
            sa.Column("reports_to_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
            sa.Column("status", sa.String(50), server_default="active", nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_people_role_id", "people", ["role_id"])
        op.create_index("ix_people_office_id", "people", ["office_id"])
        op.create_index("ix_people_reports_to_id", "people", ["reports_to_id"])

    if not _table_exists("deals"):
        op.create_table(
            "deals",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("setter_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
            sa.Column("closer_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
            sa.Column("is_self_gen", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column("office_id", sa.Integer(), nullable=True),
            sa.Column("deal_type", sa.String(50), nullable=False),
            sa.Column("deal_value", sa.Numeric(12, 2), nullable=False),
            sa.Column("system_size_kw", sa.Numeric(10, 3), nullable=True),
            sa.Column("sale_date", sa.Date(), nullable=True),
            sa.Column("close_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(50), server_default="sold", nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_deals_setter_id", "deals", ["setter_id"])
        op.create_index("ix_deals_closer_id", "deals", ["closer_id"])
        op.create_index("ix_deals_office_id", "deals", ["office_id"])
        op.create_index("ix_deals_deal_type", "deals", ["deal_type"])
        op.create_index("ix_deals_close_date", "deals", ["close_date"])
        op.create_index("ix_deals_status", "deals", ["status"])

    if not _table_exists("pay_plans"):
        op.create_table(
            "pay_plans",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
            *_timestamps(),
        )

    if not _table_exists("person_pay_plans"):
        op.create_table(
            "person_pay_plans",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
            sa.Column("pay_plan_id", sa.Integer(), sa.ForeignKey("pay_plans.id"), nullable=False),
            sa.Column("effective_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        )
        op.create_index("ix_person_pay_plans_person_id", "person_pay_plans", ["person_id"])
        op.create_index("ix_person_pay_plans_pay_plan_id", "person_pay_plans", ["pay_plan_id"])

    if not _table_exists("commission_rules"):
        op.create_table(
            "commission_rules",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("pay_plan_id", sa.Integer(), sa.ForeignKey("pay_plans.id"), nullable=False),
            sa.Column("name", sa.String(100), nullable=True),
            sa.Column("rule_type", sa.String(20), nullable=False),
            sa.Column("calc_method", sa.String(50), nullable=False),
            sa.Column("amount", sa.Numeric(10, 4), nullable=False),
            sa.Column("applies_to_role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=True),
            sa.Column("override_level", sa.Integer(), nullable=True),
            sa.Column("override_source", sa.String(20), nullable=True),
            sa.Column("deal_types", sa.JSON(), nullable=True),
            sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
            *_timestamps(),
            sa.CheckConstraint(
                "(rule_type = 'base' AND override_level IS NULL AND override_source IS NULL)"
                " OR (rule_type = 'override' AND override_level >= 1 AND override_source IS NOT NULL)",
                name="ck_commission_rules_override_fields",
            ),
        )
        op.create_index("ix_commission_rules_pay_plan_id", "commission_rules", ["pay_plan_id"])
        op.create_index("ix_commission_rules_is_active", "commission_rules", ["is_active"])

    if not _table_exists("org_snapshots"):
        op.create_table(
            "org_snapshots",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("root_person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
            sa.Column("snapshot_date", sa.Date(), nullable=False),
            sa.Column("chain", sa.JSON(), nullable=False),
            sa.Column("captured_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_org_snapshots_root_person_id", "org_snapshots", ["root_person_id"])

    if not _table_exists("commissions"):
        op.create_table(
            "commissions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id"), nullable=False),
            sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
            sa.Column("commission_type", sa.String(50), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("status", sa.String(20), server_default="pending", nullable=False),
            sa.Column("pay_plan_id", sa.Integer(), sa.ForeignKey("pay_plans.id"), nullable=True),
            sa.Column("commission_rule_id", sa.Integer(), sa.ForeignKey("commission_rules.id"), nullable=True),
            sa.Column("calc_details", sa.JSON(), nullable=False),
            sa.Column("status_reason", sa.Text(), nullable=True),
            sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_commissions_deal_id", "commissions", ["deal_id"])
        op.create_index("ix_commissions_person_id", "commissions", ["person_id"])
        op.create_index("ix_commissions_commission_type", "commissions", ["commission_type"])
        op.create_index("ix_commissions_status", "commissions", ["status"])
        op.create_index("ix_commissions_commission_rule_id", "commissions", ["commission_rule_id"])

    if not _table_exists("activity_log"):
        op.create_table(
            "activity_log",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("entity_type", sa.String(50), nullable=False),
            sa.Column("entity_id", sa.Integer(), nullable=False),
            sa.Column("action", sa.String(50), nullable=False),
            sa.Column("details", sa.JSON(), nullable=True),
            sa.Column("actor_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
            sa.Column("actor_type", sa.String(50), server_default="system", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_activity_log_action", "activity_log", ["action"])
        op.create_index("ix_activity_log_actor_id", "activity_log", ["actor_id"])
        op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"])


def downgrade() -> None:
    """Drop all engine tables."""
    op.drop_table("activity_log")
    op.drop_table("commissions")
    op.drop_table("org_snapshots")
    op.drop_table("commission_rules")
    op.drop_table("person_pay_plans")
    op.drop_table("pay_plans")
    op.drop_table("deals")
    op.drop_table("people")
    op.drop_table("roles")

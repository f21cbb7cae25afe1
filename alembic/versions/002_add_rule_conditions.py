"""Add rule conditions, setter tier and deal price per watt

Revision ID: 002_add_rule_conditions
Revises: 001_commission_engine_schema
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_add_rule_conditions"
down_revision: Union[str, None] = "001_commission_engine_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add threshold conditions to rules and the inputs they read."""
    op.add_column(
        "commission_rules",
        sa.Column("conditions", sa.JSON(), nullable=True)
    )
    op.add_column(
        "people",
        sa.Column("setter_tier", sa.String(50), nullable=True)
    )
    op.add_column(
        "deals",
        sa.Column("ppw", sa.Numeric(10, 4), nullable=True)
    )


def downgrade() -> None:
    """Remove rule conditions, setter tier and price per watt."""
    op.drop_column("deals", "ppw")
    op.drop_column("people", "setter_tier")
    op.drop_column("commission_rules", "conditions")

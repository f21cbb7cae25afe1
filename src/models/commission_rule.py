"""
CommissionRule model: one rule within a pay plan.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, true
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.pay_plan import PayPlan


class RuleType(str, Enum):
    """Base rules pay the setter/closer; override rules pay their upline."""
    BASE = "base"
    OVERRIDE = "override"


class CalcMethod(str, Enum):
    """Recognised calculation methods."""
    FLAT = "flat"                                    # amount as-is
    PERCENT_OF_DEAL_VALUE = "percent_of_deal_value"  # amount% of deal value
    FLAT_PER_KW = "flat_per_kw"                      # amount x system size (kW)


class OverrideSource(str, Enum):
    """Whose upline an override rides on."""
    SETTER = "setter"
    CLOSER = "closer"


class CommissionRule(Base, TimestampMixin):
    """
    A single commission rule.

    calc_method is stored as a plain string rather than an enum so a
    misconfigured rule can be loaded and reported instead of breaking
    every query against the table.
    """

    __tablename__ = "commission_rules"
    __table_args__ = (
        CheckConstraint(
            "(rule_type = 'base' AND override_level IS NULL AND override_source IS NULL)"
            " OR (rule_type = 'override' AND override_level >= 1 AND override_source IS NOT NULL)",
            name="override_fields",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    pay_plan_id: Mapped[int] = mapped_column(
        ForeignKey("pay_plans.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    rule_type: Mapped[RuleType] = mapped_column(
        SQLAlchemyEnum(
            RuleType,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
            length=20,
        ),
        nullable=False,
    )
    calc_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
        comment="Parameter consumed by calc_method (dollars or percent)",
    )
    applies_to_role_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("roles.id"),
        nullable=True,
    )
    override_level: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="1 = direct manager, 2 = manager's manager, ...",
    )
    override_source: Mapped[Optional[OverrideSource]] = mapped_column(
        SQLAlchemyEnum(
            OverrideSource,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
            length=20,
        ),
        nullable=True,
    )
    deal_types: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Deal types this rule applies to; NULL or empty means all",
    )
    conditions: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Thresholds: setter_tier (name or list), min_kw, ppw_floor",
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
        index=True,
    )

    # Relationships
    pay_plan: Mapped["PayPlan"] = relationship(
        "PayPlan",
        back_populates="rules",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionRule(id={self.id}, plan_id={self.pay_plan_id}, type={self.rule_type}, "
            f"method='{self.calc_method}', amount={self.amount})>"
        )

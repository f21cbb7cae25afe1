"""
PayPlan and temporal PersonPayPlanAssignment models.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, ForeignKey, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.commission_rule import CommissionRule
    from src.models.person import Person


class PayPlan(Base, TimestampMixin):
    """A named, swappable bundle of commission rules."""

    __tablename__ = "pay_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
        comment="Inactive plans cannot be newly assigned but still resolve for history",
    )

    # Relationships
    rules: Mapped[List["CommissionRule"]] = relationship(
        "CommissionRule",
        back_populates="pay_plan",
        order_by="CommissionRule.sort_order",
    )

    def __repr__(self) -> str:
        return f"<PayPlan(id={self.id}, name='{self.name}')>"


class PersonPayPlanAssignment(Base):
    """
    Binds a person to a pay plan for [effective_date, end_date).

    end_date is exclusive and NULL means "current". Ranges for one
    person never overlap; services.pay_plans.assign_pay_plan enforces
    this on write.
    """

    __tablename__ = "person_pay_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    pay_plan_id: Mapped[int] = mapped_column(
        ForeignKey("pay_plans.id"),
        nullable=False,
        index=True,
    )
    effective_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    end_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    person: Mapped["Person"] = relationship(
        "Person",
        back_populates="pay_plan_assignments",
    )
    pay_plan: Mapped["PayPlan"] = relationship("PayPlan")

    def covers(self, on: date) -> bool:
        """True if this assignment is active on the given date."""
        return self.effective_date <= on and (self.end_date is None or self.end_date > on)

    def overlaps(self, start: date, end: Optional[date]) -> bool:
        """True if [start, end) intersects this assignment's range."""
        starts_before_other_ends = end is None or self.effective_date < end
        ends_after_other_starts = self.end_date is None or self.end_date > start
        return starts_before_other_ends and ends_after_other_starts

    def __repr__(self) -> str:
        return (
            f"<PersonPayPlanAssignment(person_id={self.person_id}, plan_id={self.pay_plan_id}, "
            f"{self.effective_date}..{self.end_date})>"
        )

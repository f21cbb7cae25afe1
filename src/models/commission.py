"""
Commission model: one computed payout obligation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.person import Person


class CommissionStatus(str, Enum):
    """Commission lifecycle. Transitions after creation belong to the approval workflow."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    HELD = "held"
    VOID = "void"


# A human already decided on these; recalculation never touches them.
PROTECTED_STATUSES = frozenset({
    CommissionStatus.APPROVED,
    CommissionStatus.PAID,
    CommissionStatus.VOID,
})


class Commission(Base, TimestampMixin):
    """
    A commission line item for one person on one deal.

    calc_details holds the tagged audit record built by
    services.commission (see schemas.commission.CalcDetails).
    """

    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id"),
        nullable=False,
        index=True,
    )
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    commission_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
            length=20,
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Provenance
    pay_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("pay_plans.id"),
        nullable=True,
    )
    commission_rule_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_rules.id"),
        nullable=True,
        index=True,
    )
    calc_details: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    status_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Reason for hold/void",
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="commissions",
    )
    person: Mapped["Person"] = relationship("Person")

    @property
    def is_protected(self) -> bool:
        return self.status in PROTECTED_STATUSES

    @property
    def payout_key(self) -> tuple[int, Optional[int]]:
        """(person, rule) pair that may be paid at most once per deal."""
        return (self.person_id, self.commission_rule_id)

    def __repr__(self) -> str:
        return (
            f"<Commission(id={self.id}, deal_id={self.deal_id}, person_id={self.person_id}, "
            f"type='{self.commission_type}', amount={self.amount}, status={self.status})>"
        )

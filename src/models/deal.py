"""
Deal model for closed (or closing) sales.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.commission import Commission
    from src.models.person import Person


class DealType(str, Enum):
    """Known product lines. Stored as plain strings so new lines need no migration."""
    SOLAR = "solar"
    HVAC = "hvac"
    ROOFING = "roofing"
    BATTERY = "battery"
    OTHER = "other"


class DealStatus(str, Enum):
    """Lifecycle status of the sale, owned by sales ops."""
    SOLD = "sold"
    PENDING = "pending"
    PERMITTED = "permitted"
    INSTALLED = "installed"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class Deal(Base, TimestampMixin):
    """
    A sale with a setter and a closer.

    The commission engine only reads deals. A self-gen deal is one
    where the setter also closed; is_self_gen is stored for queries
    but setter_id == closer_id is treated the same way.
    """

    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Participants
    setter_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    closer_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    is_self_gen: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    office_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        index=True,
    )

    # Deal details
    deal_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    deal_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    system_size_kw: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 3),
        nullable=True,
        comment="System size for per-kW rules (solar)",
    )
    ppw: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 4),
        nullable=True,
        comment="Price per watt (solar)",
    )

    # Dates
    sale_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    close_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(50),
        default=DealStatus.SOLD.value,
        server_default=DealStatus.SOLD.value,
        nullable=False,
        index=True,
    )

    # Relationships
    setter: Mapped["Person"] = relationship(
        "Person",
        foreign_keys=[setter_id],
    )
    closer: Mapped["Person"] = relationship(
        "Person",
        foreign_keys=[closer_id],
    )
    commissions: Mapped[List["Commission"]] = relationship(
        "Commission",
        back_populates="deal",
    )

    @property
    def self_generated(self) -> bool:
        return bool(self.is_self_gen) or self.setter_id == self.closer_id

    def calculation_date(self, today: Optional[date] = None) -> date:
        """Date used to resolve plans: close date, then sale date, then today."""
        return self.close_date or self.sale_date or today or date.today()

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, type='{self.deal_type}', value={self.deal_value})>"

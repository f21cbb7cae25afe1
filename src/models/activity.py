"""
ActivityLog model: append-only audit trail of engine writes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class ActivityAction(str, Enum):
    """Types of logged activity."""
    CREATED = "created"
    VOIDED = "voided"
    DISCREPANCY_DETECTED = "discrepancy_detected"
    PAY_PLAN_ASSIGNED = "pay_plan_assigned"


class ActivityLog(Base):
    """
    Append-only activity entry.

    entity_id is intentionally not a foreign key: entries outlive the
    pending commissions they describe, which recalculation deletes.
    """

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Type of entity affected (commission, person, ...)",
    )
    entity_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    action: Mapped[ActivityAction] = mapped_column(
        SQLAlchemyEnum(
            ActivityAction,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
            length=50,
        ),
        nullable=False,
        index=True,
    )
    details: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    actor_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    actor_type: Mapped[str] = mapped_column(
        String(50),
        default="system",
        server_default="system",
        nullable=False,
        comment="user or system",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(id={self.id}, {self.entity_type}#{self.entity_id}, action={self.action})>"
        )

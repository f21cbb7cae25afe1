"""
Person and Role models.

The commission engine treats both as read-only: the reporting
hierarchy is owned by the HR/org subsystem.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.pay_plan import PersonPayPlanAssignment


class Role(Base):
    """Job role (Sales Rep, Team Lead, Area Director, ...)."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name='{self.name}')>"


class Person(Base, TimestampMixin):
    """
    An employee.

    reports_to_id forms a tree over the people table. The data is
    not trusted to be acyclic; see services.org_snapshot.
    """

    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    role_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("roles.id"),
        nullable=True,
        index=True,
    )
    office_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        index=True,
    )
    reports_to_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    setter_tier: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Rookie, Veteran, Team Lead; read by tier-conditioned rules",
    )
    status: Mapped[str] = mapped_column(
        String(50),
        default="active",
        server_default="active",
        nullable=False,
    )

    # Relationships
    role: Mapped[Optional["Role"]] = relationship("Role")
    manager: Mapped[Optional["Person"]] = relationship(
        "Person",
        remote_side=[id],
    )
    pay_plan_assignments: Mapped[List["PersonPayPlanAssignment"]] = relationship(
        "PersonPayPlanAssignment",
        back_populates="person",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.full_name}', reports_to={self.reports_to_id})>"

"""
OrgSnapshot model: the reporting chain captured for one calculation run.
"""

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class OrgSnapshot(Base):
    """
    Immutable, point-in-time reporting chain.

    chain is an ordered list of
        {"person_id": int, "level": int, "role_id": int | None,
         "reports_to_id": int | None, "setter_tier": str | None}
    with level 0 being the root person. Rows are append-only and are
    referenced from Commission.calc_details["org_snapshot_id"].
    """

    __tablename__ = "org_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True)
    root_person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    snapshot_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Calculation date the chain was captured for",
    )
    chain: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
    )
    captured_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def entry(self, level: int) -> Optional[dict[str, Any]]:
        """Chain entry at the given level, if the chain reaches that far."""
        for item in self.chain:
            if item["level"] == level:
                return item
        return None

    @property
    def root_role_id(self) -> Optional[int]:
        root = self.entry(0)
        return root["role_id"] if root else None

    @property
    def root_setter_tier(self) -> Optional[str]:
        root = self.entry(0)
        return root.get("setter_tier") if root else None

    @property
    def upline(self) -> list[dict[str, Any]]:
        """Chain entries above the root, nearest first."""
        return sorted(
            (item for item in self.chain if item["level"] >= 1),
            key=lambda item: item["level"],
        )

    def __repr__(self) -> str:
        return f"<OrgSnapshot(id={self.id}, root={self.root_person_id}, depth={len(self.chain)})>"

"""
Disc Rescue Backend — Inventory SQLAlchemy Model
=================================================

What:  ORM model for the `inventory` table: discs found at courses and held for pickup.
Who:   Counted by the SMS workflow to tell an owner how many of their discs are
       waiting to be claimed. Rows are created by course staff tooling outside this
       service; only the claim-count query lives here.

Status lifecycle:
    NEW → UNCLAIMED → CLAIMED | SOLD | SURRENDERED
    Soft delete: `deleted = 1` hides a row without removing it.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Statuses that count as "waiting for the owner"
UNCLAIMED_STATUSES = ("UNCLAIMED", "NEW")


class InventoryItem(Base):
    """A found disc, linked to its owner by the phone number written on it."""

    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    phone_number: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        comment="Owner phone number in E.164 format (read off the disc)",
    )
    disc_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    course_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="NEW",
        server_default=text("'NEW'"),
    )

    deleted: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    date_found: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Claim-count lookups filter by owner phone first
    __table_args__ = (
        Index("idx_inventory_phone_status", "phone_number", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryItem(id={self.id}, phone_number='{self.phone_number}', "
            f"status='{self.status}')>"
        )

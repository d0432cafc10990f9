"""
Disc Rescue Backend — Phone Opt-In SQLAlchemy Model
====================================================

What:  ORM model for the `phone_opt_ins` table: SMS consent per phone number.
Who:   Written by the Twilio webhook (STOP / YES keywords) and PUT /api/phone-opt-ins;
       read before every reply to decide whether a message may be sent.

Consent states:
    1     → opted in; replies and notifications may be sent
    0     → opted out; nothing is sent
    (no row) → never asked; the next inbound message triggers the opt-in invitation
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class PhoneOptIn(Base):
    """SMS consent record keyed by the E.164 phone number Twilio reports in `From`."""

    __tablename__ = "phone_opt_ins"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        comment="Phone number in E.164 format, e.g. +15551234567",
    )

    sms_consent: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="1 = opted in, 0 = opted out",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<PhoneOptIn(id='{self.id}', sms_consent={self.sms_consent})>"

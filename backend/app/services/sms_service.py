"""
Disc Rescue Backend — SMS Service (Webhook Workflow Orchestrator)
==================================================================

What:  Decides how to answer every inbound text and owns the subscriber store.
How:   Composes TwilioMessagingService with the phone_opt_ins and inventory tables.
Who:   Called by the routes in app.routes.sms.

Inbound webhook flow (POST /api/twilio/opt-in):
    ┌───────────┐   ┌─────────────┐   ┌───────────────┐   ┌─────────────┐
    │ Signature │──▶│ Keyword or  │──▶│ Consent check │──▶│ Claim count │──▶ TwiML 200
    │  check    │   │ free text?  │   │ (1 / 0 / none)│   │ (inventory) │
    └───────────┘   └─────────────┘   └───────────────┘   └─────────────┘
         │ bad            │ STOP              │ 0 → 418
         ▼                ▼                   │ none → invitation SMS → 418
        403         consent=0 → 418           ▼
                                        YES → consent=1 + contact card

    418 means "handled, do not reply": Twilio sends nothing back to the sender.
    Consent changes are committed before the reply or any outbound message.
    Any failure rolls the session back and answers 500 with no body.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.twiml.messaging_response import MessagingResponse

from app.exceptions import DatabaseError, MessagingError, WebhookSignatureError
from app.models.inventory import UNCLAIMED_STATUSES, InventoryItem
from app.models.phone_opt_in import PhoneOptIn
from app.services.messaging_service import TwilioMessagingService

logger = logging.getLogger(__name__)

OPT_OUT_KEYWORDS = ("stop", "stopall", "unsubscribe", "cancel", "end", "quit")
OPT_IN_KEYWORDS = ("start", "yes", "unstop")

PHONE_OPT_IN_TYPE = "phone-opt-ins"

DEFAULT_REPLY = "Thanks for the message -Disc Rescue Network"
OPT_IN_MESSAGE = (
    "Disc Rescue Network: We found a disc with your number on it! "
    "Reply YES to get texts about discs waiting for you. "
    "Msg & data rates may apply. Reply STOP to opt out."
)
VCARD_MESSAGE = (
    "DRN: Save our contact to make sure you get all the latest updates from Disc Rescue Network!"
)

# Status code Twilio treats as "no reply"
NO_REPLY_STATUS = 418


def format_claim_inventory_message(count: int) -> str:
    """Reply text telling an owner how many of their discs are waiting."""
    if count == 0:
        return "DRN: You have no discs waiting to be claimed right now. -Disc Rescue Network"
    noun = "disc" if count == 1 else "discs"
    return (
        f"DRN: You have {count} {noun} waiting to be claimed! "
        "Visit discrescuenetwork.com to arrange pickup. -Disc Rescue Network"
    )


def build_twiml_reply(message: str) -> str:
    response = MessagingResponse()
    response.message(message)
    return str(response)


@dataclass(frozen=True)
class WebhookReply:
    """HTTP answer for one webhook call. An empty body means no content at all."""

    status_code: int
    body: str = ""
    media_type: Optional[str] = None


class SmsService:
    """
    Business logic for SMS consent and replies.

    Database errors from the helpers surface as DatabaseError; outbound send
    failures surface as MessagingError. The webhook handler converts both into
    a WebhookReply so the route never needs its own try/except.
    """

    def __init__(self, messaging: TwilioMessagingService):
        self.messaging = messaging

    # ── Inbound webhook ──────────────────────────────────────────────────

    async def handle_incoming(
        self,
        db: AsyncSession,
        params: Mapping[str, str],
        signature: Optional[str],
    ) -> WebhookReply:
        """
        Answer one inbound text.

        Args:
            db: Async database session
            params: Posted form fields (From, Body, and the rest of Twilio's fields)
            signature: Value of the X-Twilio-Signature header

        Returns:
            WebhookReply: TwiML 200, 418 (no reply) or 500 (no body)

        Raises:
            WebhookSignatureError: Signature missing or invalid. Nothing has been
                read or written.
        """
        if not self.messaging.validate_request(params, signature):
            logger.error("Rejected webhook post with an invalid Twilio signature")
            raise WebhookSignatureError(context={"from": params.get("From")})

        phone_number = params.get("From", "")
        message = params.get("Body")

        if not message or not isinstance(message, str):
            logger.error("Webhook post from %s has no message body", phone_number)
            return self._twiml(DEFAULT_REPLY)

        try:
            return await self._respond(db, phone_number, message.strip().lower())
        except DatabaseError as e:
            logger.error(
                "Webhook from %s failed on a database operation: %s | Context: %s",
                phone_number,
                e.message,
                e.context,
            )
            await db.rollback()
            return WebhookReply(status_code=500)
        except Exception:
            logger.exception("Webhook from %s failed", phone_number)
            await db.rollback()
            return WebhookReply(status_code=500)

    async def _respond(self, db: AsyncSession, phone_number: str, text: str) -> WebhookReply:
        if text in OPT_OUT_KEYWORDS:
            await self.set_opt_in(db, phone_number, 0)
            await self.commit(db)
            logger.info("%s opted out", phone_number)
            return WebhookReply(status_code=NO_REPLY_STATUS)

        status = await self.get_opt_in_status(db, phone_number)

        if text in OPT_IN_KEYWORDS:
            if status != 1:
                await self.set_opt_in(db, phone_number, 1)
                await self.commit(db)
                logger.info("%s opted in", phone_number)
                await self._send_quietly(self.messaging.send_vcard, phone_number, VCARD_MESSAGE)
        elif status == 0:
            return WebhookReply(status_code=NO_REPLY_STATUS)
        elif status is None:
            await self._send_quietly(self.messaging.send_sms, phone_number, OPT_IN_MESSAGE)
            return WebhookReply(status_code=NO_REPLY_STATUS)

        count = await self.get_unclaimed_inventory_count(db, phone_number)
        return self._twiml(format_claim_inventory_message(count))

    async def _send_quietly(self, send, phone_number: str, body: str) -> None:
        # A failed invitation or contact card must not undo the consent change
        try:
            await send(phone_number, body)
        except MessagingError as e:
            logger.error("Could not message %s: %s | Context: %s", phone_number, e.message, e.context)

    @staticmethod
    def _twiml(message: str) -> WebhookReply:
        return WebhookReply(
            status_code=200,
            body=build_twiml_reply(message),
            media_type="text/xml",
        )

    # ── Subscriber store ─────────────────────────────────────────────────

    async def commit(self, db: AsyncSession) -> None:
        """Commit now, so a consent change is durable before anyone is told about it."""
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error committing opt-in change: %s", str(e))
            raise DatabaseError(
                context={"operation": "commit", "error_type": type(e).__name__},
            ) from e

    async def get_opt_in_status(self, db: AsyncSession, phone_number: str) -> Optional[int]:
        """1 or 0 for a known number, None when the number has never been recorded."""
        try:
            result = await db.execute(
                select(PhoneOptIn.sms_consent).where(PhoneOptIn.id == phone_number)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error reading opt-in for %s: %s", phone_number, str(e))
            raise DatabaseError(
                context={"operation": "get_opt_in_status", "error_type": type(e).__name__},
            ) from e

    async def set_opt_in(self, db: AsyncSession, phone_number: str, sms_consent: int) -> PhoneOptIn:
        """Insert or update the consent record for a phone number."""
        try:
            record = await db.get(PhoneOptIn, phone_number)
            if record is None:
                record = PhoneOptIn(id=phone_number, sms_consent=sms_consent)
                db.add(record)
            else:
                record.sms_consent = sms_consent
            await db.flush()
            return record
        except SQLAlchemyError as e:
            logger.error("Database error writing opt-in for %s: %s", phone_number, str(e))
            raise DatabaseError(
                context={"operation": "set_opt_in", "error_type": type(e).__name__},
            ) from e

    async def list_phone_opt_ins(
        self,
        db: AsyncSession,
        phones: Optional[Sequence[str]] = None,
        sms_consent: Optional[int] = None,
    ) -> List[PhoneOptIn]:
        """
        Consent records, optionally filtered.

        Args:
            phones: Only these phone numbers (None or empty → all numbers)
            sms_consent: Only records with this consent value
        """
        query = select(PhoneOptIn).order_by(PhoneOptIn.id)
        if phones:
            query = query.where(PhoneOptIn.id.in_(list(phones)))
        if sms_consent is not None:
            query = query.where(PhoneOptIn.sms_consent == sms_consent)

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing opt-ins: %s", str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": "list_phone_opt_ins", "error_type": type(e).__name__},
            ) from e

    async def get_unclaimed_inventory_count(self, db: AsyncSession, phone_number: str) -> int:
        """Discs found for this number that are still waiting (NEW or UNCLAIMED, not deleted)."""
        query = (
            select(func.count(InventoryItem.id))
            .where(InventoryItem.phone_number == phone_number)
            .where(InventoryItem.status.in_(UNCLAIMED_STATUSES))
            .where(InventoryItem.deleted == 0)
        )
        try:
            result = await db.execute(query)
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error counting inventory for %s: %s", phone_number, str(e))
            raise DatabaseError(
                context={"operation": "get_unclaimed_inventory_count", "error_type": type(e).__name__},
            ) from e

    # ── Outbound ─────────────────────────────────────────────────────────

    async def send_sms(self, phone_number: str, message: str) -> str:
        """Send an arbitrary text (POST /api/sms). MessagingError propagates to the 502 handler."""
        return await self.messaging.send_sms(phone_number, message)

"""
Disc Rescue Backend — SMS Route Handlers
=========================================

What:  Twilio webhook, phone opt-in administration and outbound SMS.
How:   Thin handlers; SmsService owns every decision.

    POST /api/twilio/opt-in           Twilio inbound message webhook (form-encoded)
    GET  /api/phone-opt-ins           list consent records (?phone=…&smsConsent=…)
    GET  /api/phone-opt-ins/{phone}   one consent record
    PUT  /api/phone-opt-ins           create or update a consent record
    POST /api/sms                     send a text from the Disc Rescue number
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_sms_service
from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse
from app.schemas.sms import (
    PhoneOptInAttributes,
    PhoneOptInDocument,
    PhoneOptInListResponse,
    PhoneOptInResource,
    SmsRequest,
)
from app.services.sms_service import SmsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["SMS"])

TWILIO_SIGNATURE_HEADER = "X-Twilio-Signature"


def _to_resource(record) -> PhoneOptInResource:
    return PhoneOptInResource(
        id=record.id,
        attributes=PhoneOptInAttributes(sms_consent=record.sms_consent),
    )


@router.post(
    "/twilio/opt-in",
    summary="Twilio inbound SMS webhook",
    responses={
        200: {"description": "TwiML reply", "content": {"text/xml": {}}},
        403: {"description": "Invalid Twilio signature (empty body)"},
        418: {"description": "Handled; no reply is sent (empty body)"},
        500: {"description": "Database failure (empty body)"},
    },
)
async def twilio_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    sms_service: SmsService = Depends(get_sms_service),
) -> Response:
    """
    Twilio posts every message sent to the Disc Rescue number here.

    The signature covers all posted fields, so the whole form is passed through.
    """
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    signature = request.headers.get(TWILIO_SIGNATURE_HEADER)

    reply = await sms_service.handle_incoming(db, params, signature)

    if not reply.body:
        return Response(status_code=reply.status_code)
    return Response(
        content=reply.body,
        status_code=reply.status_code,
        media_type=reply.media_type,
    )


@router.get(
    "/phone-opt-ins",
    response_model=PhoneOptInListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List phone opt-in records",
)
async def list_phone_opt_ins(
    response: Response,
    phone: List[str] | None = Query(
        default=None,
        description="Only these phone numbers; repeat the parameter for several",
    ),
    sms_consent: int | None = Query(
        default=None,
        alias="smsConsent",
        ge=0,
        le=1,
        description="Only records with this consent value",
    ),
    db: AsyncSession = Depends(get_db_session),
    sms_service: SmsService = Depends(get_sms_service),
) -> PhoneOptInListResponse:
    records = await sms_service.list_phone_opt_ins(db, phones=phone, sms_consent=sms_consent)
    response.headers["X-Total-Count"] = str(len(records))
    return PhoneOptInListResponse(data=[_to_resource(record) for record in records])


@router.get(
    "/phone-opt-ins/{phone}",
    response_model=PhoneOptInDocument,
    responses={
        404: {"description": "No record for this phone number", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get one phone opt-in record",
)
async def get_phone_opt_in(
    phone: str,
    db: AsyncSession = Depends(get_db_session),
    sms_service: SmsService = Depends(get_sms_service),
) -> PhoneOptInDocument:
    status = await sms_service.get_opt_in_status(db, phone)
    if status is None:
        raise NotFoundError("phone-opt-in", phone)
    return PhoneOptInDocument(
        data=PhoneOptInResource(id=phone, attributes=PhoneOptInAttributes(sms_consent=status))
    )


@router.put(
    "/phone-opt-ins",
    response_model=PhoneOptInDocument,
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create or update a phone opt-in record",
)
async def put_phone_opt_in(
    body: PhoneOptInDocument,
    db: AsyncSession = Depends(get_db_session),
    sms_service: SmsService = Depends(get_sms_service),
) -> PhoneOptInDocument:
    """Upsert the record and echo the request body."""
    await sms_service.set_opt_in(db, body.data.id, body.data.attributes.sms_consent)
    await sms_service.commit(db)
    logger.info("Set sms consent for %s to %d", body.data.id, body.data.attributes.sms_consent)
    return body


@router.post(
    "/sms",
    response_class=PlainTextResponse,
    responses={
        200: {"description": "Message accepted by Twilio", "content": {"text/plain": {}}},
        502: {"description": "Twilio rejected the message", "model": ErrorResponse},
    },
    summary="Send an SMS",
)
async def post_sms(
    body: SmsRequest,
    sms_service: SmsService = Depends(get_sms_service),
) -> str:
    await sms_service.send_sms(body.data.phone, body.data.message)
    return "Success"

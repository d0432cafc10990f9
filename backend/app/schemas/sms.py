"""
Disc Rescue Backend — SMS and Phone Opt-In Schemas
===================================================

What:  Request/response contract for the opt-in and outbound SMS endpoints.
How:   JSON:API-style documents, matching what the admin frontend already sends:

    GET /api/phone-opt-ins
        {"data": [{"type": "phone-opt-ins", "id": "+15551234567",
                   "attributes": {"smsConsent": 1}}]}

    PUT /api/phone-opt-ins
        {"data": {"id": "+15551234567", "attributes": {"smsConsent": 0}}}

    POST /api/sms
        {"data": {"phone": "+15551234567", "message": "Your disc is ready"}}

Field names on the wire are camelCase (`smsConsent`); attribute names in Python
stay snake_case through pydantic aliases.
"""

from typing import List

from pydantic import BaseModel, Field

from app.services.sms_service import PHONE_OPT_IN_TYPE


class PhoneOptInAttributes(BaseModel):
    model_config = {"populate_by_name": True}

    sms_consent: int = Field(
        alias="smsConsent",
        ge=0,
        le=1,
        description="1 = opted in, 0 = opted out",
    )


class PhoneOptInResource(BaseModel):
    type: str = Field(default=PHONE_OPT_IN_TYPE)
    id: str = Field(min_length=1, description="Phone number in E.164 format")
    attributes: PhoneOptInAttributes


class PhoneOptInListResponse(BaseModel):
    data: List[PhoneOptInResource] = Field(default_factory=list)


class PhoneOptInDocument(BaseModel):
    """Body of PUT /api/phone-opt-ins; echoed back unchanged on success."""

    data: PhoneOptInResource


class SmsPayload(BaseModel):
    phone: str = Field(min_length=1, description="Recipient phone number in E.164 format")
    message: str = Field(min_length=1, max_length=1600, description="Message text")


class SmsRequest(BaseModel):
    data: SmsPayload


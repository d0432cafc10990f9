"""
Disc Rescue Backend — Dependency Wiring
========================================

What:  Builds the provider clients and the services that use them.
How:   Provider clients are created lazily, once per process (lru_cache), and
       passed into service constructors. Routes depend on the service getters,
       so tests replace any of them through `app.dependency_overrides`.

    get_vision_client ──▶ VisionService ─┐
    get_catalog_client ──────────────────┼──▶ ImageAnalysisService
                                         │
    get_twilio_client ──▶ TwilioMessagingService ──▶ SmsService
"""

import logging
from functools import lru_cache
from typing import Optional

from google.cloud import vision
from twilio.rest import Client

from app.config import settings
from app.services.catalog_client import CatalogClient
from app.services.categorizer import TextCategorizer
from app.services.image_analysis_service import ImageAnalysisService
from app.services.messaging_service import TwilioMessagingService
from app.services.sms_service import SmsService
from app.services.vision_service import VisionService

logger = logging.getLogger(__name__)


# ── Provider clients ─────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_vision_client() -> vision.ImageAnnotatorClient:
    """Service-account credentials when a key file is configured, else ADC."""
    if settings.google_application_credentials:
        logger.info("Vision client using service account %s", settings.google_application_credentials)
        return vision.ImageAnnotatorClient.from_service_account_file(
            settings.google_application_credentials
        )
    return vision.ImageAnnotatorClient()


@lru_cache(maxsize=1)
def get_twilio_client() -> Optional[Client]:
    """None when the account credentials are missing; sends then fail with MessagingError."""
    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        logger.warning("Twilio credentials not configured; outbound messages are disabled")
        return None
    return Client(settings.twilio_account_sid, settings.twilio_auth_token)


@lru_cache(maxsize=1)
def get_catalog_client() -> CatalogClient:
    return CatalogClient(
        base_url=settings.catalog_api_url,
        timeout=settings.catalog_timeout,
    )


async def close_clients() -> None:
    """Release pooled connections of clients that were actually created."""
    if get_catalog_client.cache_info().currsize:
        await get_catalog_client().close()
        get_catalog_client.cache_clear()


# ── Services (FastAPI dependencies) ──────────────────────────────────────

def get_messaging_service() -> TwilioMessagingService:
    return TwilioMessagingService(
        client=get_twilio_client(),
        send_from=settings.twilio_send_from,
        auth_token=settings.twilio_auth_token,
        webhook_url=settings.twilio_webhook_url,
        vcard_url=settings.vcard_url,
    )


def get_sms_service() -> SmsService:
    return SmsService(get_messaging_service())


def get_image_analysis_service() -> ImageAnalysisService:
    return ImageAnalysisService(
        vision_service=VisionService(get_vision_client()),
        catalog_client=get_catalog_client(),
        categorizer=TextCategorizer(threshold=settings.fuzzy_match_threshold),
    )

"""
Disc Rescue Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything under `app` is imported,
       so the settings singleton and the database engine pick up test values.

Fixture Hierarchy:
    ├── mock_db_session:      AsyncMock session (no database)
    ├── db_session:           real AsyncSession on in-memory SQLite
    ├── make_vision_response: builds fake AnnotateImageResponse objects
    ├── png_bytes / png_base64: a small real PNG made with Pillow
    ├── twilio_client:        MagicMock standing in for twilio.rest.Client
    ├── messaging_service / sms_service: services wired to the mock client
    ├── sign_webhook:         computes a valid X-Twilio-Signature
    └── test_client:          HTTPX AsyncClient against the FastAPI app
"""

import base64
import io
import os
from types import SimpleNamespace
from typing import Dict, List, Optional, Sequence, Tuple
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any app import)
# ══════════════════════════════════════════════════════════════════════════

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["TWILIO_ACCOUNT_SID"] = "ACtest0000000000000000000000000000"
os.environ["TWILIO_AUTH_TOKEN"] = "test-auth-token"
os.environ["TWILIO_SEND_FROM"] = "+15550001111"
os.environ["TWILIO_WEBHOOK_URL"] = "https://api.example.test/api/twilio/opt-in"
os.environ["VCARD_URL"] = "https://example.test/drn.vcf"
os.environ["CATALOG_API_URL"] = "https://catalog.example.test"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from twilio.request_validator import RequestValidator

from app.config import settings
from app.database import Base
import app.models  # noqa: F401
from app.services.messaging_service import TwilioMessagingService
from app.services.sms_service import SmsService


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    AsyncMock session for tests that only need to observe calls.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite with every table created; one shared connection per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Vision fakes
# ══════════════════════════════════════════════════════════════════════════

def _fake_word(text: str, confidence: float) -> SimpleNamespace:
    return SimpleNamespace(
        symbols=[SimpleNamespace(text=char) for char in text],
        confidence=confidence,
    )


@pytest.fixture
def make_vision_response():
    """
    Build an object shaped like vision.AnnotateImageResponse.

    Usage:
        response = make_vision_response(
            words=[("Innova", 0.98), ("555", 0.9)],
            colors=[((255, 0, 0), 0.6)],
        )
    """

    def build(
        words: Sequence[Tuple[str, float]] = (),
        colors: Sequence[Tuple[Tuple[int, int, int], float]] = (),
        page_confidence: float = 0.95,
        error_message: str = "",
        with_page: bool = True,
    ) -> SimpleNamespace:
        pages: List[SimpleNamespace] = []
        if with_page:
            paragraph = SimpleNamespace(words=[_fake_word(text, conf) for text, conf in words])
            block = SimpleNamespace(paragraphs=[paragraph])
            pages.append(SimpleNamespace(blocks=[block], confidence=page_confidence))

        color_infos = [
            SimpleNamespace(
                color=SimpleNamespace(red=rgb[0], green=rgb[1], blue=rgb[2]),
                score=score,
            )
            for rgb, score in colors
        ]

        return SimpleNamespace(
            full_text_annotation=SimpleNamespace(pages=pages),
            image_properties_annotation=SimpleNamespace(
                dominant_colors=SimpleNamespace(colors=color_infos)
            ),
            error=SimpleNamespace(message=error_message, code=3 if error_message else 0),
        )

    return build


# ══════════════════════════════════════════════════════════════════════════
# Images
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 20, 20)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_base64(png_bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


# ══════════════════════════════════════════════════════════════════════════
# Twilio
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def twilio_client():
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid="SM00000000000000000000000000000000")
    return client


@pytest.fixture
def messaging_service(twilio_client) -> TwilioMessagingService:
    return TwilioMessagingService(
        client=twilio_client,
        send_from=settings.twilio_send_from,
        auth_token=settings.twilio_auth_token,
        webhook_url=settings.twilio_webhook_url,
        vcard_url=settings.vcard_url,
    )


@pytest.fixture
def sms_service(messaging_service) -> SmsService:
    return SmsService(messaging_service)


@pytest.fixture
def sign_webhook():
    """Signature Twilio would send for these form params."""
    validator = RequestValidator(settings.twilio_auth_token)

    def sign(params: Dict[str, str], url: Optional[str] = None) -> str:
        return validator.compute_signature(url or settings.twilio_webhook_url, params)

    return sign


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient routed straight into the app; dependency overrides are
    cleared afterwards.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

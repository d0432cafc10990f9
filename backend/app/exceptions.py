"""
Disc Rescue Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the webhook and image pipelines.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    DiscRescueError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── WebhookSignatureError    → 403 Forbidden (empty body)
    ├── DatabaseError            → 500 Internal Server Error
    ├── VisionServiceError       → never reaches a handler; the image pipeline
    │                              turns it into an {"errors": [...]} result
    ├── MessagingError           → 502 Bad Gateway
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class DiscRescueError(Exception):
    """
    Base exception for all Disc Rescue application errors.

    Attributes:
        message:  Client-safe description; falls back to the class's default_message
        context:  Debug details for the logs, never sent to the client
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)


class ValidationError(DiscRescueError):
    """
    Client input that cannot be processed (HTTP 400).

    Undecodable base64, empty or oversize image, unsupported image format.
    The offending field name is copied into the context so it reaches the
    response `details`.
    """

    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.field = field
        if field:
            self.context["field"] = field


class NotFoundError(DiscRescueError):
    """No record for the requested key (HTTP 404)."""

    def __init__(self, resource: str, key: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        message = f"No {resource} found for '{key}'" if key else f"No {resource} found"
        super().__init__(message, {**(context or {}), "resource": resource, "key": key})


class WebhookSignatureError(DiscRescueError):
    """
    Inbound webhook whose X-Twilio-Signature does not verify.

    Answered with a bare 403; nothing has touched the database yet.
    """

    default_message = "Webhook signature validation failed"


class DatabaseError(DiscRescueError):
    """Query or write failure. Clients only ever see a generic 500 message."""

    default_message = "A database error occurred. Please try again later."


class VisionServiceError(DiscRescueError):
    """
    Vision provider call failed or came back with an error payload.

    Caught by ImageAnalysisService and reported as {"errors": [message]}.
    """

    default_message = "Image analysis service is temporarily unavailable"


class MessagingError(DiscRescueError):
    """Twilio rejected or failed an outbound message (HTTP 502 on POST /api/sms)."""

    default_message = "Error sending sms"


class RateLimitExceededError(DiscRescueError):
    """Per-IP request limit reached (HTTP 429 with Retry-After)."""

    def __init__(self, retry_after: int = 60, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Too many requests. Try again in {retry_after} seconds.",
            {**(context or {}), "retry_after": retry_after},
        )
        self.retry_after = retry_after

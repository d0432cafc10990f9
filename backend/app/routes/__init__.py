# Routes package init
"""
Disc Rescue Backend — API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - sms.py:     POST /api/twilio/opt-in        (Twilio inbound webhook)
                  GET  /api/phone-opt-ins        (list consent records)
                  GET  /api/phone-opt-ins/{phone}
                  PUT  /api/phone-opt-ins        (upsert a consent record)
                  POST /api/sms                  (send a text)
    - vision.py:  POST /api/vision/image-text    (read a disc photo)
    - health.py:  GET  /health                   (service health check)

Routes stay thin: they extract request data, call a service and shape the
HTTP response. Business logic lives in app.services.
"""

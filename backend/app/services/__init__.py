# Services package init
"""
Disc Rescue Backend — Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the providers/database.

Service Inventory:
    Image pipeline
    - ImageService:          base64 decoding and image validation
    - VisionService:         Google Cloud Vision text + dominant color request
    - CatalogClient:         brand and mold reference lists (httpx)
    - TextCategorizer:       phone number / brand / disc tagging
      (ocr_text, fuzzy_match: the pure helpers it is built from)
    - color_classifier:      RGB → primary color family
    - ImageAnalysisService:  orchestrates the above for one image

    SMS workflow
    - TwilioMessagingService: signature validation and outbound SMS/MMS
    - SmsService:             webhook decisions, opt-in store, claim counts

Provider clients are injected through constructors; app.dependencies builds
the production instances.
"""

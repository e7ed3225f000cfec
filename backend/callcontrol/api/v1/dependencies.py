"""Request dependencies and the wiring that builds them.

Services are built once in the application lifespan and kept on
``app.state``; routes read them from there so tests can override them.
"""

import logging

from fastapi import HTTPException, Request

from callcontrol.core.config import Settings
from callcontrol.services.telephony import (
    CallEventSink,
    TelephonyConfigurationError,
    TelephonyService,
    TwilioProvider,
    WebhookHandler,
)

logger = logging.getLogger(__name__)


def build_webhook_handler(settings: Settings, events: CallEventSink | None = None) -> WebhookHandler:
    return WebhookHandler(
        settings.telephony_config(),
        events=events,
        inbound_greeting=settings.INBOUND_GREETING,
        voicemail_greeting=settings.VOICEMAIL_GREETING,
        menu_greeting=settings.IVR_GREETING,
        menu_options=settings.IVR_MENU_OPTIONS,
    )


def build_telephony_service(
    settings: Settings, events: CallEventSink | None = None
) -> TelephonyService | None:
    """Build the Twilio-backed service, or None when credentials are missing."""
    try:
        provider = TwilioProvider(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
        )
    except TelephonyConfigurationError as exc:
        logger.warning("Telephony service disabled: %s", exc)
        return None

    logger.info("Twilio provider initialized")
    return TelephonyService(provider, settings.telephony_config(), events=events)


def get_telephony_service(request: Request) -> TelephonyService:
    service = getattr(request.app.state, "telephony_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Twilio credentials not configured. "
            "Set TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN environment variables.",
        )
    return service


def get_webhook_handler(request: Request) -> WebhookHandler:
    handler = getattr(request.app.state, "webhook_handler", None)
    if handler is None:
        raise HTTPException(status_code=503, detail="Webhook handler not initialized")
    return handler

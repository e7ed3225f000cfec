"""Voice endpoints: Twilio webhooks and TwiML call-flow documents."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from callcontrol.api.v1.dependencies import get_telephony_service, get_webhook_handler
from callcontrol.api.v1.errors import to_http_error
from callcontrol.schemas.voice import (
    HoldRequest,
    IVRMenuRequest,
    TransferRequest,
    VoicemailRequest,
)
from callcontrol.services.telephony import (
    TWIML_CONTENT_TYPE,
    ConferenceOptions,
    ControlDocument,
    TelephonyError,
    TelephonyService,
    WebhookHandler,
    render_twiml,
)
from callcontrol.services.telephony.documents import EMPTY_DOCUMENT

logger = logging.getLogger(__name__)

router = APIRouter()


def _twiml_response(document: ControlDocument) -> PlainTextResponse:
    return PlainTextResponse(content=render_twiml(document), media_type=TWIML_CONTENT_TYPE)


async def _answer_webhook(
    request: Request,
    handle: Callable[[Mapping[str, Any]], ControlDocument],
) -> PlainTextResponse:
    """Run a webhook handler, answering with an empty document on any failure.

    Twilio must always get valid TwiML back or the live call hangs.
    """
    try:
        form_data = await request.form()
        document = handle(dict(form_data))
    except TelephonyError as exc:
        logger.warning("Webhook %s rejected: %s", request.url.path, exc)
        document = EMPTY_DOCUMENT
    except Exception:
        logger.exception("Unexpected error handling webhook %s", request.url.path)
        document = EMPTY_DOCUMENT
    return _twiml_response(document)


def _serve(build: Callable[[], ControlDocument], path: str) -> PlainTextResponse:
    try:
        document = build()
    except Exception:
        logger.exception("Failed to build document for %s", path)
        document = EMPTY_DOCUMENT
    return _twiml_response(document)


# ---------------------------------------------------------------------------
# Twilio webhooks (form-encoded in, TwiML out)
# ---------------------------------------------------------------------------


@router.post("/webhook")
async def inbound_call(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    """Voice URL for inbound calls: greet the caller and record a message."""
    return await _answer_webhook(request, handler.handle_inbound_call)


@router.post("/webhook/recording")
async def recording_complete(
    request: Request, handler: WebhookHandler = Depends(get_webhook_handler)
):
    return await _answer_webhook(request, handler.handle_recording)


@router.post("/webhook/transcription")
async def transcription_complete(
    request: Request, handler: WebhookHandler = Depends(get_webhook_handler)
):
    return await _answer_webhook(request, handler.handle_transcription)


@router.post("/status")
async def status_callback(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    """Call status callback. Must return quickly; do not do heavy processing here."""
    return await _answer_webhook(request, handler.handle_status)


@router.post("/ivr-menu")
async def ivr_menu(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    return _serve(handler.ivr_menu, request.url.path)


@router.post("/ivr-response")
async def ivr_response(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    return await _answer_webhook(request, handler.handle_menu_selection)


@router.post("/voicemail")
async def voicemail(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    return _serve(handler.voicemail, request.url.path)


@router.post("/voicemail-complete")
async def voicemail_complete(
    request: Request, handler: WebhookHandler = Depends(get_webhook_handler)
):
    return await _answer_webhook(request, handler.handle_recording)


@router.post("/voicemail-transcription")
async def voicemail_transcription(
    request: Request, handler: WebhookHandler = Depends(get_webhook_handler)
):
    return await _answer_webhook(request, handler.handle_transcription)


# ---------------------------------------------------------------------------
# Call-flow documents for callers (JSON in, TwiML out)
# ---------------------------------------------------------------------------


def _build(build: Callable[[], ControlDocument]) -> PlainTextResponse:
    try:
        document = build()
    except TelephonyError as exc:
        raise to_http_error(exc) from exc
    return _twiml_response(document)


@router.post("/twiml/conference")
async def conference_twiml(
    payload: ConferenceOptions,
    service: TelephonyService = Depends(get_telephony_service),
):
    return _build(lambda: service.create_conference(payload))


@router.post("/twiml/transfer")
async def transfer_twiml(
    payload: TransferRequest,
    service: TelephonyService = Depends(get_telephony_service),
):
    return _build(lambda: service.transfer_call(payload.target, payload.announcement))


@router.post("/twiml/hold")
async def hold_twiml(
    payload: HoldRequest,
    service: TelephonyService = Depends(get_telephony_service),
):
    return _build(lambda: service.hold_call(payload.url))


@router.post("/twiml/ivr-menu")
async def ivr_menu_twiml(
    payload: IVRMenuRequest,
    service: TelephonyService = Depends(get_telephony_service),
):
    return _build(lambda: service.create_ivr_menu(payload.greeting, payload.options))


@router.post("/twiml/voicemail")
async def voicemail_twiml(
    payload: VoicemailRequest,
    service: TelephonyService = Depends(get_telephony_service),
):
    return _build(lambda: service.create_voicemail(payload.greeting, payload.max_length))

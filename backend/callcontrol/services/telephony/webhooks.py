"""Webhook parsing and handlers.

Each handler takes the raw form fields Twilio posted, parses them into a
``WebhookPayload`` up front, and returns the control document to answer
with. Malformed payloads raise ``TelephonyValidationError``; no document is
built from partial data.

Events for the same call may arrive out of order or more than once. The
handlers treat each one on its own and forward it to the event sink, which
owns any ordering decisions.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from callcontrol.services.telephony.builder import (
    DEFAULT_VOICEMAIL_MAX_LENGTH,
    INBOUND_RECORDING_MAX_LENGTH,
    build_greeting_and_record,
    build_ivr_menu,
    build_menu_selection,
    index_menu,
)
from callcontrol.services.telephony.config import TelephonyConfig
from callcontrol.services.telephony.documents import EMPTY_DOCUMENT, ControlDocument
from callcontrol.services.telephony.events import CallEventSink, NullEventSink
from callcontrol.services.telephony.exceptions import TelephonyValidationError
from callcontrol.services.telephony.models import (
    CallDirection,
    CallEvent,
    CallEventType,
    CallStatus,
    IVRMenuOption,
    WebhookPayload,
)

logger = logging.getLogger(__name__)

DEFAULT_INBOUND_GREETING = "Thank you for calling. Please leave a message after the beep."
DEFAULT_VOICEMAIL_GREETING = "Please leave a message after the beep. Press the pound key when finished."
DEFAULT_MENU_GREETING = "Thank you for calling."

_ANSWERABLE_STATUSES = (None, CallStatus.QUEUED, CallStatus.RINGING)


def parse_webhook(form: Mapping[str, Any]) -> WebhookPayload:
    """Validate raw webhook fields into a WebhookPayload.

    Raises:
        TelephonyValidationError: CallSid, From or To is missing, or a
            typed field (CallDuration, Confidence, ...) does not parse.
    """
    try:
        return WebhookPayload.model_validate(dict(form))
    except PydanticValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise TelephonyValidationError(
            f"Malformed webhook payload, missing or invalid fields: {', '.join(fields)}"
        ) from exc


def _require(payload: WebhookPayload, *fields: str) -> None:
    missing = [field for field in fields if getattr(payload, field) is None]
    if missing:
        raise TelephonyValidationError(
            f"Webhook for call {payload.CallSid} missing required fields: {', '.join(missing)}"
        )


def _direction(payload: WebhookPayload) -> CallDirection | None:
    try:
        return CallDirection(payload.Direction) if payload.Direction else None
    except ValueError:
        return None


class WebhookHandler:
    """Decides the follow-up document for each provider callback."""

    def __init__(
        self,
        config: TelephonyConfig,
        events: CallEventSink | None = None,
        inbound_greeting: str = DEFAULT_INBOUND_GREETING,
        voicemail_greeting: str = DEFAULT_VOICEMAIL_GREETING,
        menu_greeting: str = DEFAULT_MENU_GREETING,
        menu_options: Sequence[IVRMenuOption] = (),
    ) -> None:
        # Reject duplicate digits at startup rather than mid-call
        index_menu(menu_options)

        self._config = config
        self._events = events or NullEventSink()
        self._inbound_greeting = inbound_greeting
        self._voicemail_greeting = voicemail_greeting
        self._menu_greeting = menu_greeting
        self._menu_options = tuple(menu_options)

    def handle_inbound_call(self, form: Mapping[str, Any]) -> ControlDocument:
        """Answer a new inbound call with a greeting and a 30 second recording."""
        payload = parse_webhook(form)
        logger.info(
            "Inbound call from %s to %s. Call SID: %s",
            payload.From,
            payload.To,
            payload.CallSid,
        )

        status = payload.status
        if status not in _ANSWERABLE_STATUSES:
            logger.info(
                "Voice webhook for call %s already at status %s; acknowledging",
                payload.CallSid,
                payload.CallStatus,
            )
            return EMPTY_DOCUMENT

        self._events.publish(
            CallEvent(
                type=CallEventType.CALL_NEW,
                call_id=payload.CallSid,
                status=status or CallStatus.RINGING,
                from_number=payload.From,
                to_number=payload.To,
                direction=_direction(payload) or CallDirection.INBOUND,
            )
        )
        return build_greeting_and_record(
            self._inbound_greeting,
            action_url=self._config.recording_callback_url,
            transcribe_callback_url=self._config.transcription_callback_url,
            max_length=INBOUND_RECORDING_MAX_LENGTH,
        )

    def handle_recording(self, form: Mapping[str, Any]) -> ControlDocument:
        """Acknowledge a finished recording and attach its URL to the call."""
        payload = parse_webhook(form)
        _require(payload, "RecordingSid", "RecordingUrl")
        logger.info(
            "Recording completed. Recording SID: %s, URL: %s",
            payload.RecordingSid,
            payload.RecordingUrl,
        )

        self._events.publish(
            CallEvent(
                type=CallEventType.RECORDING_COMPLETED,
                call_id=payload.CallSid,
                status=payload.status,
                from_number=payload.From,
                to_number=payload.To,
                recording_id=payload.RecordingSid,
                recording_url=payload.RecordingUrl,
                duration_seconds=payload.RecordingDuration,
            )
        )
        return EMPTY_DOCUMENT

    def handle_transcription(self, form: Mapping[str, Any]) -> ControlDocument:
        """Acknowledge a transcription and attach its text to the call."""
        payload = parse_webhook(form)
        if payload.TranscriptionStatus == "failed":
            logger.warning(
                "Transcription failed for call %s (recording %s)",
                payload.CallSid,
                payload.RecordingSid,
            )
            return EMPTY_DOCUMENT

        _require(payload, "TranscriptionText")
        logger.info("Transcription received for call %s", payload.CallSid)
        logger.debug("Transcription text: %s", payload.TranscriptionText)

        self._events.publish(
            CallEvent(
                type=CallEventType.TRANSCRIPTION_COMPLETED,
                call_id=payload.CallSid,
                status=payload.status,
                from_number=payload.From,
                to_number=payload.To,
                recording_id=payload.RecordingSid,
                recording_url=payload.RecordingUrl,
                transcription=payload.TranscriptionText,
            )
        )
        return EMPTY_DOCUMENT

    def handle_status(self, form: Mapping[str, Any]) -> ControlDocument:
        """Forward a status callback; statuses "behind" the last one still apply."""
        payload = parse_webhook(form)
        _require(payload, "CallStatus")
        status = payload.status
        if status is None:
            raise TelephonyValidationError(
                f"Unknown call status {payload.CallStatus!r} for call {payload.CallSid}"
            )

        if status is CallStatus.IN_PROGRESS:
            event_type = CallEventType.CALL_ANSWERED
        elif status.is_terminal:
            event_type = CallEventType.CALL_ENDED
        else:
            event_type = CallEventType.CALL_STATUS

        logger.info(
            "Status callback: CallSid=%s Status=%s Duration=%s",
            payload.CallSid,
            status.value,
            payload.CallDuration,
        )
        self._events.publish(
            CallEvent(
                type=event_type,
                call_id=payload.CallSid,
                status=status,
                from_number=payload.From,
                to_number=payload.To,
                direction=_direction(payload),
                duration_seconds=payload.CallDuration,
                recording_url=payload.RecordingUrl,
            )
        )
        return EMPTY_DOCUMENT

    def handle_menu_selection(self, form: Mapping[str, Any]) -> ControlDocument:
        payload = parse_webhook(form)
        logger.info("IVR input received: call=%s digits=%s", payload.CallSid, payload.Digits)
        return build_menu_selection(
            payload.Digits, self._menu_options, menu_url=self._config.ivr_menu_url
        )

    def ivr_menu(self) -> ControlDocument:
        return build_ivr_menu(
            self._menu_greeting,
            self._menu_options,
            action_url=self._config.ivr_response_url,
            menu_url=self._config.ivr_menu_url,
        )

    def voicemail(self) -> ControlDocument:
        return build_greeting_and_record(
            self._voicemail_greeting,
            action_url=self._config.voicemail_complete_url,
            transcribe_callback_url=self._config.voicemail_transcription_url,
            max_length=DEFAULT_VOICEMAIL_MAX_LENGTH,
        )

"""Telephony action service.

Bridges typed option structs to the injected provider client and to the
document builder. Holds no mutable state of its own: every call is handled
independently, and provider errors are logged with context and re-raised
unchanged in kind. Retrying is left to the caller.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from callcontrol.services.telephony.base import BaseTelephonyProvider
from callcontrol.services.telephony.builder import (
    DEFAULT_VOICEMAIL_MAX_LENGTH,
    build_conference,
    build_greeting_and_record,
    build_hold,
    build_ivr_menu,
    build_transfer,
)
from callcontrol.services.telephony.config import TelephonyConfig
from callcontrol.services.telephony.documents import ControlDocument
from callcontrol.services.telephony.events import CallEventSink, NullEventSink
from callcontrol.services.telephony.exceptions import (
    TelephonyConfigurationError,
    TelephonyError,
    TelephonyProviderError,
    TelephonyValidationError,
)
from callcontrol.services.telephony.models import (
    CallDirection,
    CallEvent,
    CallEventType,
    CallHistoryFilter,
    CallOptions,
    CallRecord,
    CallResult,
    CallStatus,
    ConferenceOptions,
    IVRMenuOption,
    Recording,
    SMSOptions,
    SmsResult,
)

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 60
DEFAULT_RECORDINGS_LIMIT = 20

# Status events we want callbacks for
DEFAULT_STATUS_EVENTS = [
    "initiated",
    "ringing",
    "answered",
    "completed",
]


def resolve_call_options(options: CallOptions, config: TelephonyConfig) -> CallOptions:
    """Fill every unset call option from configuration and defaults."""
    return options.model_copy(
        update={
            "from_number": options.from_number or config.origin_number,
            "url": options.url or config.voice_webhook_url,
            "status_callback": options.status_callback or config.status_callback_url,
            "status_callback_method": options.status_callback_method or "POST",
            "status_callback_events": (
                options.status_callback_events
                if options.status_callback_events is not None
                else list(DEFAULT_STATUS_EVENTS)
            ),
            "record": bool(options.record),
            "recording_channels": options.recording_channels or "mono",
            "timeout": options.timeout or DEFAULT_CALL_TIMEOUT,
        }
    )


def resolve_sms_options(options: SMSOptions, config: TelephonyConfig) -> SMSOptions:
    return options.model_copy(update={"from_number": options.from_number or config.origin_number})


def filter_call_history(
    records: Iterable[CallRecord], filters: CallHistoryFilter
) -> list[CallRecord]:
    """Apply a history filter to provider results.

    The window is inclusive at ``start_time`` and exclusive at ``end_time``;
    records without a start time cannot satisfy a window.
    """
    start = _as_utc(filters.start_time)
    end = _as_utc(filters.end_time)

    matched: list[CallRecord] = []
    for record in records:
        if len(matched) >= filters.limit:
            break
        if filters.to and record.to_number != filters.to:
            continue
        if filters.from_number and record.from_number != filters.from_number:
            continue
        if start or end:
            started = _as_utc(record.start_time)
            if started is None:
                continue
            if start and started < start:
                continue
            if end and started >= end:
                continue
        matched.append(record)
    return matched


class TelephonyService:
    """Outbound call actions and call-flow documents.

    Constructed once at startup with its collaborators and shared by
    reference with request handlers.
    """

    def __init__(
        self,
        provider: BaseTelephonyProvider,
        config: TelephonyConfig,
        events: CallEventSink | None = None,
    ) -> None:
        self._provider = provider
        self._config = config
        self._events = events or NullEventSink()

    @property
    def provider(self) -> BaseTelephonyProvider:
        return self._provider

    @property
    def config(self) -> TelephonyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Provider-backed actions
    # ------------------------------------------------------------------

    async def place_call(self, options: CallOptions) -> CallResult:
        """Place an outbound call. Provider rejections surface as TelephonyProviderError."""
        resolved = resolve_call_options(options, self._config)
        if not resolved.from_number:
            raise TelephonyConfigurationError(
                "No from_number provided and no default origin number configured"
            )

        try:
            result = await self._provider.create_call(resolved)
        except TelephonyError as exc:
            logger.error("Error making outbound call to %s: %s", resolved.to, exc)
            raise

        logger.info("Outbound call initiated. Call SID: %s", result.call_id)
        self._events.publish(
            CallEvent(
                type=CallEventType.CALL_NEW,
                call_id=result.call_id,
                status=result.status,
                from_number=resolved.from_number,
                to_number=resolved.to,
                direction=CallDirection.OUTBOUND_API,
            )
        )
        return result

    async def get_call_details(self, call_id: str) -> CallRecord:
        _require_id(call_id, "call_id")
        try:
            return await self._provider.fetch_call(call_id)
        except TelephonyError as exc:
            logger.error("Error fetching call details for %s: %s", call_id, exc)
            raise

    async def end_call(self, call_id: str) -> CallRecord:
        """Hang up a call. Ending an already-ended call returns its record."""
        record = await self.get_call_details(call_id)
        if record.is_terminal:
            logger.info("Call %s already ended with status %s", call_id, record.status.value)
            return record

        try:
            record = await self._provider.update_call_status(call_id, CallStatus.COMPLETED)
        except TelephonyProviderError as exc:
            # The call may have ended between the fetch and the update
            current = await self.get_call_details(call_id)
            if current.is_terminal:
                return current
            logger.error("Error ending call %s: %s", call_id, exc)
            raise

        logger.info("Call ended. Call SID: %s", call_id)
        return record

    async def list_recordings(
        self, call_id: str, limit: int = DEFAULT_RECORDINGS_LIMIT
    ) -> list[Recording]:
        """Up to ``limit`` recordings for a call, in provider order (newest first)."""
        _require_id(call_id, "call_id")
        if limit < 1:
            raise TelephonyValidationError(f"limit must be positive, got {limit}")
        try:
            return await self._provider.list_recordings(call_id, limit)
        except TelephonyError as exc:
            logger.error("Error fetching recordings for call %s: %s", call_id, exc)
            raise

    async def delete_recording(self, recording_id: str) -> None:
        """Delete a recording. Deleting twice raises TelephonyNotFoundError."""
        _require_id(recording_id, "recording_id")
        try:
            await self._provider.delete_recording(recording_id)
        except TelephonyError as exc:
            logger.error("Error deleting recording %s: %s", recording_id, exc)
            raise
        logger.info("Recording deleted. Recording SID: %s", recording_id)

    async def send_message(self, options: SMSOptions) -> SmsResult:
        resolved = resolve_sms_options(options, self._config)
        if not resolved.from_number:
            raise TelephonyConfigurationError(
                "No from_number provided and no default origin number configured"
            )

        try:
            result = await self._provider.create_message(resolved)
        except TelephonyError as exc:
            logger.error("Error sending SMS to %s: %s", resolved.to, exc)
            raise

        logger.info("SMS sent. Message SID: %s", result.message_id)
        return result

    async def query_call_history(
        self, filters: CallHistoryFilter | None = None
    ) -> list[CallRecord]:
        filters = filters or CallHistoryFilter()
        try:
            records = await self._provider.list_calls(filters)
        except TelephonyError as exc:
            logger.error("Error fetching call history: %s", exc)
            raise
        return filter_call_history(records, filters)

    # ------------------------------------------------------------------
    # Call-flow documents
    # ------------------------------------------------------------------

    def create_ivr_menu(
        self, greeting: str, options: Sequence[IVRMenuOption]
    ) -> ControlDocument:
        return build_ivr_menu(
            greeting,
            options,
            action_url=self._config.ivr_response_url,
            menu_url=self._config.ivr_menu_url,
        )

    def create_conference(self, options: ConferenceOptions) -> ControlDocument:
        return build_conference(options)

    def transfer_call(self, target_number: str, announcement: str | None = None) -> ControlDocument:
        return build_transfer(target_number, announcement)

    def hold_call(self, hold_audio_url: str | None = None) -> ControlDocument:
        return build_hold(hold_audio_url or self._config.hold_music_url)

    def create_voicemail(
        self, greeting: str, max_length: int = DEFAULT_VOICEMAIL_MAX_LENGTH
    ) -> ControlDocument:
        return build_greeting_and_record(
            greeting,
            action_url=self._config.voicemail_complete_url,
            transcribe_callback_url=self._config.voicemail_transcription_url,
            max_length=max_length,
        )


def _require_id(value: str, field: str) -> None:
    if not value or not value.strip():
        raise TelephonyValidationError(f"{field} is required")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value

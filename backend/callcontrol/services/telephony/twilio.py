"""Twilio telephony provider implementation."""

import asyncio
import logging
from functools import partial

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from callcontrol.services.telephony.base import BaseTelephonyProvider
from callcontrol.services.telephony.exceptions import (
    TelephonyConfigurationError,
    TelephonyError,
    TelephonyNotFoundError,
    TelephonyProviderError,
)
from callcontrol.services.telephony.models import (
    STATUS_MAP,
    CallDirection,
    CallHistoryFilter,
    CallOptions,
    CallRecord,
    CallResult,
    CallStatus,
    Recording,
    SMSOptions,
    SmsResult,
)

logger = logging.getLogger(__name__)

_DIRECTION_MAP: dict[str, CallDirection] = {
    "inbound": CallDirection.INBOUND,
    "outbound-api": CallDirection.OUTBOUND_API,
    "outbound-dial": CallDirection.OUTBOUND_DIAL,
}

TWILIO_API_HOST = "https://api.twilio.com"


class TwilioProvider(BaseTelephonyProvider):
    """Twilio voice and messaging provider.

    The Twilio REST client is synchronous; every request runs in the
    default executor so callers can await it without blocking the loop.
    """

    def __init__(self, account_sid: str, auth_token: str) -> None:
        if not account_sid or not auth_token:
            raise TelephonyConfigurationError(
                "TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are required"
            )
        self._client = Client(account_sid, auth_token)

    @property
    def name(self) -> str:
        return "twilio"

    async def create_call(self, options: CallOptions) -> CallResult:
        """Initiate an outbound call via Twilio REST API."""
        params = _drop_none(
            to=options.to,
            from_=options.from_number,
            url=options.url,
            method="POST",
            status_callback=options.status_callback,
            status_callback_method=options.status_callback_method,
            status_callback_event=options.status_callback_events,
            record=options.record,
            recording_status_callback=options.recording_status_callback,
            recording_channels=options.recording_channels,
            trim=options.trim,
            timeout=options.timeout,
            machine_detection=options.machine_detection,
            machine_detection_timeout=options.machine_detection_timeout,
        )
        call = await self._run(
            partial(self._client.calls.create, **params),
            operation="create_call",
            resource="Call",
            target=options.to,
        )

        status = STATUS_MAP.get(call.status, CallStatus.QUEUED)
        logger.info(
            "Twilio call initiated: sid=%s to=%s status=%s",
            call.sid,
            options.to,
            status.value,
        )
        return CallResult(call_id=call.sid, status=status)

    async def fetch_call(self, call_id: str) -> CallRecord:
        """Fetch call details from Twilio."""
        call = await self._run(
            self._client.calls(call_id).fetch,
            operation="fetch_call",
            resource="Call",
            target=call_id,
        )
        return _to_call_record(call)

    async def update_call_status(self, call_id: str, status: CallStatus) -> CallRecord:
        call = await self._run(
            partial(self._client.calls(call_id).update, status=status.value),
            operation="update_call_status",
            resource="Call",
            target=call_id,
        )
        return _to_call_record(call)

    async def list_recordings(self, call_id: str, limit: int) -> list[Recording]:
        recordings = await self._run(
            partial(self._client.recordings.list, call_sid=call_id, limit=limit),
            operation="list_recordings",
            resource="Call",
            target=call_id,
        )
        return [_to_recording(recording) for recording in recordings]

    async def delete_recording(self, recording_id: str) -> None:
        await self._run(
            self._client.recordings(recording_id).delete,
            operation="delete_recording",
            resource="Recording",
            target=recording_id,
        )

    async def create_message(self, options: SMSOptions) -> SmsResult:
        params = _drop_none(
            to=options.to,
            from_=options.from_number,
            body=options.body,
            media_url=options.media_urls,
            status_callback=options.status_callback,
        )
        message = await self._run(
            partial(self._client.messages.create, **params),
            operation="create_message",
            resource="Message",
            target=options.to,
        )
        return SmsResult(message_id=message.sid, status=message.status)

    async def list_calls(self, filters: CallHistoryFilter) -> list[CallRecord]:
        params = _drop_none(
            to=filters.to,
            from_=filters.from_number,
            start_time_after=filters.start_time,
            start_time_before=filters.end_time,
            limit=filters.limit,
        )
        calls = await self._run(
            partial(self._client.calls.list, **params),
            operation="list_calls",
            resource="Call",
            target=filters.to or filters.from_number or "*",
        )
        return [_to_call_record(call) for call in calls]

    async def _run(self, func, *, operation: str, resource: str, target: str):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func)
        except TwilioRestException as exc:
            if exc.status == 404:
                raise TelephonyNotFoundError(resource, target, operation=operation) from exc
            raise TelephonyProviderError(
                "twilio",
                f"{operation} failed for {target}: {exc.msg} (code {exc.code})",
                operation=operation,
                target=target,
            ) from exc
        except TelephonyError:
            raise
        except Exception as exc:
            raise TelephonyProviderError(
                "twilio",
                f"{operation} failed for {target}: {exc}",
                operation=operation,
                target=target,
            ) from exc


def _drop_none(**params) -> dict:
    return {key: value for key, value in params.items() if value is not None}


def _to_call_record(call) -> CallRecord:
    direction = _DIRECTION_MAP.get(call.direction)
    if direction is None and call.direction:
        logger.debug("Unmapped Twilio call direction %s for %s", call.direction, call.sid)

    return CallRecord(
        call_id=call.sid,
        from_number=call.from_,
        to_number=call.to,
        direction=direction,
        status=STATUS_MAP.get(call.status, CallStatus.FAILED),
        start_time=call.start_time,
        end_time=call.end_time,
        duration_seconds=int(call.duration) if call.duration else None,
        price=float(call.price) if call.price else None,
        price_unit=call.price_unit,
    )


def _to_recording(recording) -> Recording:
    url = None
    if recording.uri:
        uri = recording.uri
        if uri.endswith(".json"):
            uri = uri[: -len(".json")]
        url = f"{TWILIO_API_HOST}{uri}"

    return Recording(
        recording_id=recording.sid,
        call_id=recording.call_sid,
        status=recording.status,
        duration_seconds=int(recording.duration) if recording.duration else None,
        created_at=recording.date_created,
        url=url,
    )

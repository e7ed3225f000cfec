"""Telephony call models."""

import re
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CallStatus(str, Enum):
    QUEUED = "queued"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BUSY = "busy"
    FAILED = "failed"
    NO_ANSWER = "no-answer"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        CallStatus.COMPLETED,
        CallStatus.BUSY,
        CallStatus.FAILED,
        CallStatus.NO_ANSWER,
        CallStatus.CANCELED,
    }
)

# Twilio status string → our CallStatus enum
STATUS_MAP: dict[str, CallStatus] = {
    "queued": CallStatus.QUEUED,
    "initiated": CallStatus.QUEUED,
    "ringing": CallStatus.RINGING,
    "in-progress": CallStatus.IN_PROGRESS,
    "completed": CallStatus.COMPLETED,
    "busy": CallStatus.BUSY,
    "failed": CallStatus.FAILED,
    "no-answer": CallStatus.NO_ANSWER,
    "canceled": CallStatus.CANCELED,
}


class CallDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND_API = "outbound-api"
    OUTBOUND_DIAL = "outbound-dial"


class BeepMode(str, Enum):
    """When a conference plays its join/leave beep."""

    TRUE = "true"
    FALSE = "false"
    ON_ENTER = "onEnter"
    ON_EXIT = "onExit"


class RecordingMode(str, Enum):
    RECORD_FROM_START = "record-from-start"
    DO_NOT_RECORD = "do-not-record"


# E.164-ish numbers, or SIP / client endpoints
_DIALABLE = re.compile(r"^(\+?[0-9]{2,15}|(sip|client):\S+)$")


def _check_dialable(value: str) -> str:
    value = value.strip()
    if not _DIALABLE.match(value):
        raise ValueError(f"not a dialable identifier: {value!r}")
    return value


class CallOptions(BaseModel):
    """Outbound call request.

    Optional fields stay ``None`` until ``resolve_call_options`` fills them
    from configuration and the documented defaults.
    """

    model_config = ConfigDict(frozen=True)

    to: str = Field(..., min_length=1, description="Destination (E.164, sip: or client:)")
    from_number: str | None = Field(None, description="Caller ID. Falls back to the configured number.")
    url: str | None = Field(None, description="URL the provider fetches call instructions from")
    status_callback: str | None = None
    status_callback_method: Literal["GET", "POST"] | None = None
    status_callback_events: list[str] | None = None
    record: bool | None = None
    recording_status_callback: str | None = None
    recording_channels: Literal["mono", "dual"] | None = None
    trim: Literal["trim-silence", "do-not-trim"] | None = None
    timeout: int | None = Field(None, ge=1, le=600, description="Ring timeout in seconds")
    machine_detection: Literal["Enable", "DetectMessageEnd"] | None = None
    machine_detection_timeout: int | None = Field(None, ge=3, le=59)

    @field_validator("to")
    @classmethod
    def _validate_to(cls, value: str) -> str:
        return _check_dialable(value)


class CallResult(BaseModel):
    call_id: str
    status: CallStatus


class CallRecord(BaseModel):
    """Snapshot of a call as reported by the provider or folded from webhooks."""

    call_id: str
    from_number: str | None = None
    to_number: str | None = None
    direction: CallDirection | None = None
    status: CallStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_seconds: int | None = None
    recording_url: str | None = None
    transcription: str | None = None
    price: float | None = None
    price_unit: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class Recording(BaseModel):
    recording_id: str
    call_id: str | None = None
    status: str | None = None
    duration_seconds: int | None = None
    created_at: datetime | None = None
    url: str | None = None


class IVRMenuOption(BaseModel):
    digit: str = Field(..., pattern=r"^[0-9*#]$")
    description: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1, description="URL the caller is sent to on this digit")


class ConferenceOptions(BaseModel):
    """Conference room parameters; unset flags are resolved by the builder."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    start_conference_on_enter: bool | None = None
    end_conference_on_exit: bool | None = None
    wait_url: str | None = None
    max_participants: int | None = None
    record: bool | None = None
    muted: bool | None = None
    beep: BeepMode | None = None
    status_callback: str | None = None
    status_callback_events: list[str] | None = None

    @field_validator("beep", mode="before")
    @classmethod
    def _coerce_beep(cls, value):
        if isinstance(value, bool):
            return BeepMode.TRUE if value else BeepMode.FALSE
        return value


class SMSOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    to: str = Field(..., min_length=1)
    from_number: str | None = None
    body: str = Field(..., min_length=1, max_length=1600)
    media_urls: list[str] | None = None
    status_callback: str | None = None

    @field_validator("to")
    @classmethod
    def _validate_to(cls, value: str) -> str:
        return _check_dialable(value)


class SmsResult(BaseModel):
    """Result of sending an SMS message via a telephony provider."""

    message_id: str
    status: str


class CallHistoryFilter(BaseModel):
    """Call history query.

    ``start_time`` is inclusive, ``end_time`` exclusive; both bound the
    call's start timestamp.
    """

    to: str | None = None
    from_number: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int = Field(50, ge=1, le=1000)

    @model_validator(mode="after")
    def _check_window(self) -> "CallHistoryFilter":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class WebhookPayload(BaseModel):
    """Twilio voice webhook payload.

    Field names match Twilio's POST parameter names exactly.
    """

    model_config = ConfigDict(extra="ignore")

    CallSid: str
    From: str
    To: str
    CallStatus: str | None = None
    Direction: str | None = None
    AccountSid: str | None = None
    ApiVersion: str | None = None
    CallerName: str | None = None
    CallDuration: int | None = None
    RecordingUrl: str | None = None
    RecordingSid: str | None = None
    RecordingStatus: str | None = None
    RecordingDuration: int | None = None
    TranscriptionSid: str | None = None
    TranscriptionText: str | None = None
    TranscriptionStatus: str | None = None
    Digits: str | None = None
    SpeechResult: str | None = None
    Confidence: float | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    # Quoted: the CallStatus field shadows the enum inside this class body.
    @property
    def status(self) -> "CallStatus | None":
        if self.CallStatus is None:
            return None
        return STATUS_MAP.get(self.CallStatus)


class CallEventType(str, Enum):
    CALL_NEW = "call.new"
    CALL_ANSWERED = "call.answered"
    CALL_ENDED = "call.ended"
    CALL_STATUS = "call.status"
    RECORDING_COMPLETED = "call.recording.completed"
    TRANSCRIPTION_COMPLETED = "call.transcription.completed"


class CallEvent(BaseModel):
    """Signal emitted to the surrounding system when a call changes."""

    type: CallEventType
    call_id: str
    status: CallStatus | None = None
    from_number: str | None = None
    to_number: str | None = None
    direction: CallDirection | None = None
    duration_seconds: int | None = None
    recording_id: str | None = None
    recording_url: str | None = None
    transcription: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

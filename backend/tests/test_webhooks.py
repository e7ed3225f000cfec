"""Tests for webhook parsing and the webhook handlers."""

import pytest

from callcontrol.services.telephony import (
    CallDirection,
    CallEvent,
    CallEventSink,
    CallEventType,
    CallStatus,
    IVRMenuOption,
    TelephonyConfigurationError,
    TelephonyValidationError,
    WebhookHandler,
    parse_webhook,
)
from callcontrol.services.telephony.documents import EMPTY_DOCUMENT, Gather, Record, Redirect, Say
from callcontrol.services.telephony.webhooks import DEFAULT_INBOUND_GREETING

BASE_URL = "https://test.ngrok.io"

INBOUND_FORM = {
    "CallSid": "C1",
    "From": "+15551230000",
    "To": "+15559998888",
    "CallStatus": "ringing",
    "Direction": "inbound",
    "AccountSid": "ACtest",
}


class RecordingSink(CallEventSink):
    def __init__(self) -> None:
        self.events: list[CallEvent] = []

    def publish(self, event: CallEvent) -> None:
        self.events.append(event)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def recording_handler(telephony_config, sink, menu_options) -> WebhookHandler:
    return WebhookHandler(telephony_config, events=sink, menu_options=menu_options)


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


class TestParseWebhook:
    def test_parses_twilio_fields(self):
        payload = parse_webhook({**INBOUND_FORM, "CallDuration": "42", "Unknown": "x"})

        assert payload.CallSid == "C1"
        assert payload.From == "+15551230000"
        assert payload.CallDuration == 42
        assert payload.status == CallStatus.RINGING

    def test_blank_optional_fields_are_none(self):
        payload = parse_webhook({**INBOUND_FORM, "Digits": "", "RecordingUrl": "  "})
        assert payload.Digits is None
        assert payload.RecordingUrl is None

    @pytest.mark.parametrize("missing", ["CallSid", "From", "To"])
    def test_missing_identity_field(self, missing):
        form = {k: v for k, v in INBOUND_FORM.items() if k != missing}

        with pytest.raises(TelephonyValidationError, match=missing):
            parse_webhook(form)

    def test_unparseable_duration(self):
        with pytest.raises(TelephonyValidationError, match="CallDuration"):
            parse_webhook({**INBOUND_FORM, "CallDuration": "soon"})

    def test_unknown_status_has_no_mapping(self):
        assert parse_webhook({**INBOUND_FORM, "CallStatus": "paused"}).status is None

    def test_initiated_maps_to_queued(self):
        assert parse_webhook({**INBOUND_FORM, "CallStatus": "initiated"}).status is CallStatus.QUEUED


# ---------------------------------------------------------------------------
# Inbound calls
# ---------------------------------------------------------------------------


class TestInboundCall:
    def test_greets_then_records_for_thirty_seconds(self, recording_handler, sink):
        doc = recording_handler.handle_inbound_call(INBOUND_FORM)

        assert doc.verbs[0] == Say(text=DEFAULT_INBOUND_GREETING)
        record = doc.verbs[1]
        assert isinstance(record, Record)
        assert record.max_length == 30
        assert record.transcribe is True
        assert record.action == f"{BASE_URL}/api/v1/voice/webhook/recording"
        assert record.transcribe_callback == f"{BASE_URL}/api/v1/voice/webhook/transcription"

        assert len(sink.events) == 1
        event = sink.events[0]
        assert event.type == CallEventType.CALL_NEW
        assert event.call_id == "C1"
        assert event.direction == CallDirection.INBOUND
        assert event.status == CallStatus.RINGING

    def test_custom_greeting(self, telephony_config):
        handler = WebhookHandler(telephony_config, inbound_greeting="Hi there.")
        doc = handler.handle_inbound_call(INBOUND_FORM)
        assert doc.verbs[0] == Say(text="Hi there.")

    def test_missing_call_sid_builds_nothing(self, recording_handler, sink):
        form = {k: v for k, v in INBOUND_FORM.items() if k != "CallSid"}

        with pytest.raises(TelephonyValidationError):
            recording_handler.handle_inbound_call(form)
        assert sink.events == []

    def test_already_answered_call_is_acknowledged(self, recording_handler, sink):
        doc = recording_handler.handle_inbound_call({**INBOUND_FORM, "CallStatus": "in-progress"})

        assert doc == EMPTY_DOCUMENT
        assert sink.events == []

    def test_duplicate_delivery_gets_same_document(self, recording_handler):
        first = recording_handler.handle_inbound_call(INBOUND_FORM)
        second = recording_handler.handle_inbound_call(INBOUND_FORM)
        assert first == second


# ---------------------------------------------------------------------------
# Recording and transcription callbacks
# ---------------------------------------------------------------------------


class TestRecordingCallback:
    def test_publishes_recording(self, recording_handler, sink):
        doc = recording_handler.handle_recording(
            {
                **INBOUND_FORM,
                "CallStatus": "completed",
                "RecordingSid": "RE1",
                "RecordingUrl": "https://api.twilio.com/Recordings/RE1",
                "RecordingDuration": "12",
            }
        )

        assert doc.is_empty
        event = sink.events[0]
        assert event.type == CallEventType.RECORDING_COMPLETED
        assert event.recording_id == "RE1"
        assert event.recording_url == "https://api.twilio.com/Recordings/RE1"
        assert event.duration_seconds == 12

    def test_missing_recording_sid(self, recording_handler, sink):
        with pytest.raises(TelephonyValidationError, match="RecordingSid"):
            recording_handler.handle_recording(
                {**INBOUND_FORM, "RecordingUrl": "https://api.twilio.com/Recordings/RE1"}
            )
        assert sink.events == []


class TestTranscriptionCallback:
    def test_publishes_transcription(self, recording_handler, sink):
        doc = recording_handler.handle_transcription(
            {
                **INBOUND_FORM,
                "RecordingSid": "RE1",
                "TranscriptionText": "Call me back please.",
                "TranscriptionStatus": "completed",
            }
        )

        assert doc.is_empty
        event = sink.events[0]
        assert event.type == CallEventType.TRANSCRIPTION_COMPLETED
        assert event.transcription == "Call me back please."

    def test_failed_transcription_is_acknowledged(self, recording_handler, sink):
        doc = recording_handler.handle_transcription(
            {**INBOUND_FORM, "TranscriptionStatus": "failed"}
        )
        assert doc.is_empty
        assert sink.events == []

    def test_missing_text(self, recording_handler, sink):
        with pytest.raises(TelephonyValidationError, match="TranscriptionText"):
            recording_handler.handle_transcription(INBOUND_FORM)
        assert sink.events == []


# ---------------------------------------------------------------------------
# Status callbacks
# ---------------------------------------------------------------------------


class TestStatusCallback:
    @pytest.mark.parametrize(
        ("status", "event_type"),
        [
            ("ringing", CallEventType.CALL_STATUS),
            ("in-progress", CallEventType.CALL_ANSWERED),
            ("completed", CallEventType.CALL_ENDED),
            ("no-answer", CallEventType.CALL_ENDED),
        ],
    )
    def test_event_type_by_status(self, recording_handler, sink, status, event_type):
        doc = recording_handler.handle_status({**INBOUND_FORM, "CallStatus": status})

        assert doc.is_empty
        assert sink.events[0].type == event_type

    def test_duration_forwarded(self, recording_handler, sink):
        recording_handler.handle_status(
            {**INBOUND_FORM, "CallStatus": "completed", "CallDuration": "95"}
        )
        assert sink.events[0].duration_seconds == 95

    def test_unknown_status_rejected(self, recording_handler, sink):
        with pytest.raises(TelephonyValidationError, match="paused"):
            recording_handler.handle_status({**INBOUND_FORM, "CallStatus": "paused"})
        assert sink.events == []

    def test_missing_status_rejected(self, recording_handler):
        form = {k: v for k, v in INBOUND_FORM.items() if k != "CallStatus"}
        with pytest.raises(TelephonyValidationError, match="CallStatus"):
            recording_handler.handle_status(form)

    def test_each_delivery_is_forwarded(self, recording_handler, sink):
        form = {**INBOUND_FORM, "CallStatus": "completed"}
        recording_handler.handle_status(form)
        recording_handler.handle_status(form)
        assert len(sink.events) == 2


# ---------------------------------------------------------------------------
# IVR and voicemail
# ---------------------------------------------------------------------------


class TestIvr:
    def test_menu_document(self, handler):
        doc = handler.ivr_menu()

        gather = doc.verbs[0]
        assert isinstance(gather, Gather)
        assert gather.action == f"{BASE_URL}/api/v1/voice/ivr-response"
        assert gather.prompts[0].text.startswith("Welcome to Acme. Press 1 for sales.")
        assert doc.verbs[-1] == Redirect(url=f"{BASE_URL}/api/v1/voice/ivr-menu")

    def test_selection_routes_digit(self, handler):
        doc = handler.handle_menu_selection({**INBOUND_FORM, "Digits": "0"})
        assert doc.verbs == (Redirect(url=f"{BASE_URL}/operator"),)

    def test_invalid_selection_replays_menu(self, handler):
        doc = handler.handle_menu_selection({**INBOUND_FORM, "Digits": "9"})
        assert doc.verbs[-1] == Redirect(url=f"{BASE_URL}/api/v1/voice/ivr-menu")

    def test_duplicate_digits_rejected_at_startup(self, telephony_config):
        options = [
            IVRMenuOption(digit="1", description="sales", action="/sales"),
            IVRMenuOption(digit="1", description="billing", action="/billing"),
        ]
        with pytest.raises(TelephonyConfigurationError):
            WebhookHandler(telephony_config, menu_options=options)

    def test_voicemail_document(self, handler):
        record = handler.voicemail().verbs[1]
        assert record.max_length == 120
        assert record.action == f"{BASE_URL}/api/v1/voice/voicemail-complete"

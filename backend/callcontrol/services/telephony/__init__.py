"""Telephony service: call-control documents, outbound actions and webhooks via Twilio."""

from callcontrol.services.telephony.base import BaseTelephonyProvider
from callcontrol.services.telephony.builder import (
    build_conference,
    build_greeting_and_record,
    build_hold,
    build_ivr_menu,
    build_menu_selection,
    build_transfer,
    resolve_conference,
)
from callcontrol.services.telephony.config import TelephonyConfig
from callcontrol.services.telephony.documents import (
    TWIML_CONTENT_TYPE,
    ControlDocument,
    render_twiml,
)
from callcontrol.services.telephony.events import CallEventSink, NullEventSink
from callcontrol.services.telephony.exceptions import (
    TelephonyConfigurationError,
    TelephonyError,
    TelephonyNotFoundError,
    TelephonyProviderError,
    TelephonyValidationError,
)
from callcontrol.services.telephony.models import (
    BeepMode,
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
    WebhookPayload,
)
from callcontrol.services.telephony.service import TelephonyService
from callcontrol.services.telephony.store import InMemoryCallStore
from callcontrol.services.telephony.twilio import TwilioProvider
from callcontrol.services.telephony.webhooks import WebhookHandler, parse_webhook

__all__ = [
    "TWIML_CONTENT_TYPE",
    "BaseTelephonyProvider",
    "BeepMode",
    "CallDirection",
    "CallEvent",
    "CallEventSink",
    "CallEventType",
    "CallHistoryFilter",
    "CallOptions",
    "CallRecord",
    "CallResult",
    "CallStatus",
    "ConferenceOptions",
    "ControlDocument",
    "IVRMenuOption",
    "InMemoryCallStore",
    "NullEventSink",
    "Recording",
    "SMSOptions",
    "SmsResult",
    "TelephonyConfig",
    "TelephonyConfigurationError",
    "TelephonyError",
    "TelephonyNotFoundError",
    "TelephonyProviderError",
    "TelephonyService",
    "TelephonyValidationError",
    "TwilioProvider",
    "WebhookHandler",
    "WebhookPayload",
    "build_conference",
    "build_greeting_and_record",
    "build_hold",
    "build_ivr_menu",
    "build_menu_selection",
    "build_transfer",
    "parse_webhook",
    "render_twiml",
    "resolve_conference",
]

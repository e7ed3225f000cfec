import itertools
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from callcontrol.api.v1.dependencies import get_telephony_service, get_webhook_handler
from callcontrol.main import app as fastapi_app
from callcontrol.services.telephony import (
    BaseTelephonyProvider,
    CallDirection,
    CallHistoryFilter,
    CallOptions,
    CallRecord,
    CallResult,
    CallStatus,
    InMemoryCallStore,
    IVRMenuOption,
    Recording,
    SMSOptions,
    SmsResult,
    TelephonyConfig,
    TelephonyError,
    TelephonyNotFoundError,
    TelephonyProviderError,
    TelephonyService,
    WebhookHandler,
)

BASE_URL = "https://test.ngrok.io"
ORIGIN_NUMBER = "+15550001111"


class FakeTelephonyProvider(BaseTelephonyProvider):
    """In-memory provider double.

    ``list_calls`` returns every known call in insertion order so tests can
    check the service's own history filtering.
    """

    def __init__(self) -> None:
        self.calls: dict[str, CallRecord] = {}
        self.recordings: dict[str, Recording] = {}
        self.created: list[CallOptions] = []
        self.messages: list[SMSOptions] = []
        self.history_queries: list[CallHistoryFilter] = []
        self.status_updates: list[tuple[str, CallStatus]] = []
        self.fail_with: TelephonyError | None = None
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        return "fake"

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def add_call(self, call_id: str, **fields) -> CallRecord:
        fields.setdefault("status", CallStatus.IN_PROGRESS)
        record = CallRecord(call_id=call_id, **fields)
        self.calls[call_id] = record
        return record

    def add_recording(self, recording_id: str, call_id: str, created_at: datetime) -> Recording:
        recording = Recording(
            recording_id=recording_id,
            call_id=call_id,
            status="completed",
            duration_seconds=12,
            created_at=created_at,
            url=f"https://api.twilio.com/Recordings/{recording_id}",
        )
        self.recordings[recording_id] = recording
        return recording

    async def create_call(self, options: CallOptions) -> CallResult:
        self._maybe_fail()
        call_id = f"CA{next(self._ids):032d}"
        self.created.append(options)
        self.calls[call_id] = CallRecord(
            call_id=call_id,
            from_number=options.from_number,
            to_number=options.to,
            direction=CallDirection.OUTBOUND_API,
            status=CallStatus.QUEUED,
            start_time=datetime.now(UTC),
        )
        return CallResult(call_id=call_id, status=CallStatus.QUEUED)

    async def fetch_call(self, call_id: str) -> CallRecord:
        self._maybe_fail()
        if call_id not in self.calls:
            raise TelephonyNotFoundError("Call", call_id)
        return self.calls[call_id]

    async def update_call_status(self, call_id: str, status: CallStatus) -> CallRecord:
        record = await self.fetch_call(call_id)
        if record.is_terminal:
            raise TelephonyProviderError(
                "fake",
                "Call is not in-progress. Cannot redirect.",
                operation="update_call_status",
                target=call_id,
            )
        self.status_updates.append((call_id, status))
        updated = record.model_copy(update={"status": status, "end_time": datetime.now(UTC)})
        self.calls[call_id] = updated
        return updated

    async def list_recordings(self, call_id: str, limit: int) -> list[Recording]:
        self._maybe_fail()
        matching = [r for r in self.recordings.values() if r.call_id == call_id]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        return matching[:limit]

    async def delete_recording(self, recording_id: str) -> None:
        self._maybe_fail()
        if recording_id not in self.recordings:
            raise TelephonyNotFoundError("Recording", recording_id)
        del self.recordings[recording_id]

    async def create_message(self, options: SMSOptions) -> SmsResult:
        self._maybe_fail()
        self.messages.append(options)
        return SmsResult(message_id=f"SM{next(self._ids):032d}", status="queued")

    async def list_calls(self, filters: CallHistoryFilter) -> list[CallRecord]:
        self._maybe_fail()
        self.history_queries.append(filters)
        return list(self.calls.values())


@pytest.fixture
def telephony_config() -> TelephonyConfig:
    return TelephonyConfig(
        origin_number=ORIGIN_NUMBER,
        webhook_base_url=BASE_URL,
        voice_webhook_url=f"{BASE_URL}/api/v1/voice/webhook",
        status_callback_url=f"{BASE_URL}/api/v1/voice/status",
        hold_music_url="https://cdn.example.com/hold.mp3",
    )


@pytest.fixture
def menu_options() -> list[IVRMenuOption]:
    return [
        IVRMenuOption(digit="1", description="sales", action=f"{BASE_URL}/sales"),
        IVRMenuOption(digit="2", description="support", action=f"{BASE_URL}/support"),
        IVRMenuOption(digit="0", description="the operator", action=f"{BASE_URL}/operator"),
    ]


@pytest.fixture
def provider() -> FakeTelephonyProvider:
    return FakeTelephonyProvider()


@pytest.fixture
def call_store() -> InMemoryCallStore:
    return InMemoryCallStore()


@pytest.fixture
def service(provider, telephony_config, call_store) -> TelephonyService:
    return TelephonyService(provider, telephony_config, events=call_store)


@pytest.fixture
def handler(telephony_config, call_store, menu_options) -> WebhookHandler:
    return WebhookHandler(
        telephony_config,
        events=call_store,
        menu_greeting="Welcome to Acme.",
        menu_options=menu_options,
    )


@pytest.fixture
def client(service, handler):
    """TestClient with the telephony service and webhook handler overridden."""
    fastapi_app.dependency_overrides[get_telephony_service] = lambda: service
    fastapi_app.dependency_overrides[get_webhook_handler] = lambda: handler
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()

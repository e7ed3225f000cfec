"""Abstract telephony provider interface."""

from abc import ABC, abstractmethod

from callcontrol.services.telephony.models import (
    CallHistoryFilter,
    CallOptions,
    CallRecord,
    CallResult,
    CallStatus,
    Recording,
    SMSOptions,
    SmsResult,
)


class BaseTelephonyProvider(ABC):
    """Abstract base class for telephony providers.

    Implementations raise ``TelephonyNotFoundError`` for unknown ids and
    ``TelephonyProviderError`` for every other failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier string."""

    @abstractmethod
    async def create_call(self, options: CallOptions) -> CallResult:
        """Initiate an outbound call.

        Args:
            options: Fully resolved call options (origin, callback URLs set).

        Returns:
            CallResult with the provider's call ID and initial status.
        """

    @abstractmethod
    async def fetch_call(self, call_id: str) -> CallRecord:
        """Fetch the current state of a call."""

    @abstractmethod
    async def update_call_status(self, call_id: str, status: CallStatus) -> CallRecord:
        """Move a live call to ``status`` (completed or canceled)."""

    @abstractmethod
    async def list_recordings(self, call_id: str, limit: int) -> list[Recording]:
        """List recordings for a call, newest first."""

    @abstractmethod
    async def delete_recording(self, recording_id: str) -> None:
        """Delete a recording."""

    @abstractmethod
    async def create_message(self, options: SMSOptions) -> SmsResult:
        """Send an SMS/MMS message."""

    @abstractmethod
    async def list_calls(self, filters: CallHistoryFilter) -> list[CallRecord]:
        """List calls matching ``filters``."""

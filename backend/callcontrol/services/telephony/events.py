"""Call event signalling to the surrounding system."""

from abc import ABC, abstractmethod

from callcontrol.services.telephony.models import CallEvent


class CallEventSink(ABC):
    """Receives call events (new call, status change, attachments).

    Implementations that persist state must serialize updates per call id.
    """

    @abstractmethod
    def publish(self, event: CallEvent) -> None:
        """Deliver one event."""


class NullEventSink(CallEventSink):
    def publish(self, event: CallEvent) -> None:
        pass
